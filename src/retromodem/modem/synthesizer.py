"""
Tone synthesizer

Writes PCM samples for a logical tone while keeping one continuous phase
accumulator, so bit and byte boundaries never click.
"""

import logging
from typing import Callable, Dict, Union

import numpy as np

from .config import Tone, TransmissionConfig, Waveform

logger = logging.getLogger(__name__)


def _sine(phase: np.ndarray) -> np.ndarray:
    return np.sin(2 * np.pi * phase)


def _square(phase: np.ndarray) -> np.ndarray:
    return np.where(np.mod(phase, 1.0) < 0.5, 1.0, -1.0)


def _sawtooth(phase: np.ndarray) -> np.ndarray:
    return 2 * (np.mod(phase, 1.0) - 0.5)


def _triangle(phase: np.ndarray) -> np.ndarray:
    return 2 * np.abs(2 * (np.mod(phase, 1.0) - 0.5)) - 1


# unit-amplitude oscillators over phase measured in cycles
OSCILLATORS: Dict[Waveform, Callable[[np.ndarray], np.ndarray]] = {
    Waveform.SINE: _sine,
    Waveform.SQUARE: _square,
    Waveform.SAWTOOTH: _sawtooth,
    Waveform.TRIANGLE: _triangle,
}


class ToneSynthesizer:
    """
    Generates samples for one transmission.

    The phase (in cycles) starts at zero and only moves forward while a tone
    is sounding. Silence leaves it untouched, so the carrier resumes where it
    stopped.
    """

    def __init__(self, config: TransmissionConfig):
        self.config = config
        self.amplitude = config.amplitude
        self.phase = 0.0

        if config.waveform not in OSCILLATORS:
            raise AssertionError(f"Unhandled waveform: {config.waveform}")
        self._oscillator = OSCILLATORS[config.waveform]

    def fill(self, output: np.ndarray, tone: Tone, gain: Union[float, np.ndarray] = 1.0) -> int:
        """
        Write len(output) samples of tone into output.

        Args:
            output: 1-D float view to overwrite
            tone: logical tone to sound
            gain: extra scale factor, scalar or one value per sample (ramps)

        Returns:
            Number of samples written
        """
        count = len(output)
        if count == 0:
            return 0

        if tone is Tone.SILENCE:
            output[:] = 0.0
            return count

        freq = self.config.frequency(tone)
        sample_rate = self.config.sample_rate
        if not freq or freq <= 0 or not sample_rate or sample_rate <= 0:
            logger.warning(f"Missing frequency or sample rate: {freq} Hz @ {sample_rate} Hz")
            output[:] = 0.0
            return count

        step = float(freq) / sample_rate
        phases = self.phase + step * np.arange(count, dtype=np.float64)
        output[:] = self._oscillator(phases) * (self.amplitude * gain)
        self.phase += step * count
        return count

    def generate(self, tone: Tone, count: int) -> np.ndarray:
        """Allocate and fill count samples of tone."""
        out = np.zeros(count, dtype=np.float32)
        self.fill(out, tone)
        return out
