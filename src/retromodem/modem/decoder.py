"""
Reference AFSK demodulator

Recovers bytes from a rendered transmission using the Goertzel algorithm
at the mark and space frequencies. Used to check what the modem emits;
the receiving hardware does its own demodulation.
"""

import logging
from dataclasses import replace
from typing import BinaryIO, Union

import numpy as np

from .config import Encoding, TransmissionConfig
from .constants import DATA_BITS
from .framing import even_parity_bit
from .wavfile import read_wav

logger = logging.getLogger(__name__)


class AFSKDecoder:
    """
    Decodes framed bytes from AFSK audio.

    Idle line is mark. The audio is read on a grid of whole bit periods
    anchored at the first sample (or a given offset), which is how the
    modem renders it; a space-dominant bit on that grid is a start bit.
    """

    def __init__(self, config: TransmissionConfig):
        self.config = config
        self.sample_rate = config.sample_rate
        self.samples_per_bit = config.samples_per_bit

        # precompute Goertzel coefficients
        self._mark_coeff = self._goertzel_coeff(config.frequency(config.mark_tone))
        self._space_coeff = self._goertzel_coeff(config.frequency(config.space_tone))

    def _goertzel_coeff(self, freq: float) -> float:
        """
        Compute Goertzel coefficient for a target frequency.

        The bin is not rounded to an integer: at 300 baud the mark and space
        tones of a Bell 103 pair would otherwise land in the same bin.
        """
        omega = 2 * np.pi * freq / self.sample_rate
        return 2 * np.cos(omega)

    def _goertzel_mag(self, samples: np.ndarray, coeff: float) -> float:
        """Squared magnitude at the coefficient's frequency."""
        s1, s2 = 0.0, 0.0
        for sample in samples:
            s0 = sample + coeff * s1 - s2
            s2 = s1
            s1 = s0

        # magnitude squared (skip sqrt for comparison)
        return s1 * s1 + s2 * s2 - coeff * s1 * s2

    def _detect_bit(self, samples: np.ndarray) -> int:
        """1 for mark, 0 for space."""
        mark_mag = self._goertzel_mag(samples, self._mark_coeff)
        space_mag = self._goertzel_mag(samples, self._space_coeff)
        return 1 if mark_mag > space_mag else 0

    def _signal_present(self, samples: np.ndarray) -> bool:
        return float(np.max(np.abs(samples))) > 1e-3 if len(samples) else False

    def _find_start_bit(self, samples: np.ndarray, pos: int) -> int:
        """Index of the next start bit at or after pos, or -1."""
        spb = self.samples_per_bit
        while pos + spb <= len(samples):
            window = samples[pos:pos + spb]
            if self._signal_present(window) and self._detect_bit(window) == 0:
                return pos
            pos += spb
        return -1

    def _decode_frame(self, samples: np.ndarray, start: int):
        """Returns (byte, frame_ok)."""
        spb = self.samples_per_bit
        bits = []
        cursor = start + spb  # skip start bit
        for _ in range(DATA_BITS):
            bits.append(self._detect_bit(samples[cursor:cursor + spb]))
            cursor += spb

        # LSB first
        value = 0
        for i, bit in enumerate(bits):
            value |= bit << i

        ok = True
        if self.config.encoding is Encoding.EIGHT_WITH_PARITY:
            parity = self._detect_bit(samples[cursor:cursor + spb])
            cursor += spb
            if parity != even_parity_bit(value):
                logger.warning(f"Parity error on byte 0x{value:02x} at sample {start}")
                ok = False

        stop = self._detect_bit(samples[cursor:cursor + spb])
        if stop != 1:
            logger.warning(f"Framing error on byte 0x{value:02x} at sample {start}")
            ok = False

        return value, ok

    def decode(self, samples: np.ndarray, offset: int = 0) -> bytes:
        """
        Decode every frame in samples.

        Bytes with parity or stop-bit errors are kept and logged.
        """
        samples = np.asarray(samples, dtype=np.float64).reshape(-1)
        spb = self.samples_per_bit
        if spb < 1:
            logger.warning("Degenerate config, nothing to decode")
            return b''

        frame_length = self.config.bits_per_frame * spb
        result = bytearray()
        pos = offset

        while True:
            start = self._find_start_bit(samples, pos)
            if start < 0 or start + frame_length > len(samples):
                break
            value, _ = self._decode_frame(samples, start)
            result.append(value)
            pos = start + frame_length

        return bytes(result)

    def decode_file(self, source: Union[str, bytes, BinaryIO]) -> bytes:
        """
        Decode a WAV file.

        The WAV's own sample rate is used for bit timing.
        """
        samples, sample_rate = read_wav(source)
        if sample_rate != self.sample_rate:
            return AFSKDecoder(replace(self.config, sample_rate=sample_rate)).decode(samples)
        return self.decode(samples)
