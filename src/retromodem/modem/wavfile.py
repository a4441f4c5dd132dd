"""
Canonical RIFF/WAVE serialization for offline checks.

The header is always the plain 44-byte layout with no extension chunks, so
the output can be compared byte-for-byte with other tools.
"""

import io
import struct
from enum import Enum
from typing import BinaryIO, Optional, Tuple, Union

import numpy as np
import soundfile as sf

HEADER_SIZE = 44

WAVE_FORMAT_PCM = 1
WAVE_FORMAT_IEEE_FLOAT = 3


class SampleFormat(Enum):
    """On-disk sample representation: (format tag, bytes per sample)."""
    PCM_16 = (WAVE_FORMAT_PCM, 2)
    FLOAT_32 = (WAVE_FORMAT_IEEE_FLOAT, 4)

    @property
    def format_tag(self) -> int:
        return self.value[0]

    @property
    def bytes_per_sample(self) -> int:
        return self.value[1]


def format_for(samples: np.ndarray) -> SampleFormat:
    """Integer samples are written as PCM, floats as IEEE float."""
    if np.issubdtype(samples.dtype, np.integer):
        return SampleFormat.PCM_16
    return SampleFormat.FLOAT_32


def build_header(sample_count: int, sample_rate: int, channels: int,
                 sample_format: SampleFormat) -> bytes:
    bytes_per_sample = sample_format.bytes_per_sample
    block_align = channels * bytes_per_sample
    byte_rate = sample_rate * block_align
    data_size = sample_count * channels * bytes_per_sample

    return struct.pack(
        '<4sI4s4sIHHIIHH4sI',
        b'RIFF', 36 + data_size, b'WAVE',
        b'fmt ', 16, sample_format.format_tag, channels,
        sample_rate, byte_rate, block_align, bytes_per_sample * 8,
        b'data', data_size,
    )


def encode_samples(samples: np.ndarray, sample_format: SampleFormat) -> bytes:
    if sample_format is SampleFormat.FLOAT_32:
        return np.asarray(samples, dtype='<f4').tobytes()

    if np.issubdtype(samples.dtype, np.integer):
        return np.asarray(samples, dtype='<i2').tobytes()
    # convert to 16-bit PCM
    clipped = np.clip(samples, -1.0, 1.0)
    return np.int16(clipped * 32767).astype('<i2').tobytes()


class WaveFileWriter:
    """
    Writes a finished sample buffer as a WAV file.

    Samples are interleaved when channels > 1: pass an array shaped
    (frames, channels), or a 1-D mono buffer which is duplicated.
    """

    def __init__(self, sample_rate: int, channels: int = 1,
                 sample_format: Optional[SampleFormat] = None):
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_format = sample_format

    def _frames(self, samples: np.ndarray) -> np.ndarray:
        samples = np.asarray(samples)
        if samples.ndim == 1 and self.channels > 1:
            samples = np.repeat(samples[:, np.newaxis], self.channels, axis=1)
        return samples

    def to_bytes(self, samples: np.ndarray) -> bytes:
        frames = self._frames(samples)
        sample_format = self.sample_format or format_for(frames)
        frame_count = frames.shape[0]
        header = build_header(frame_count, self.sample_rate, self.channels, sample_format)
        return header + encode_samples(frames.reshape(-1), sample_format)

    def write(self, samples: np.ndarray, target: Union[str, BinaryIO]):
        """Write to a path or an open binary file."""
        data = self.to_bytes(samples)
        if isinstance(target, str):
            with open(target, 'wb') as f:
                f.write(data)
        else:
            target.write(data)


def read_wav(source: Union[str, bytes, BinaryIO]) -> Tuple[np.ndarray, int]:
    """
    Read a WAV into mono float samples.

    Any PCM width or float layout libsndfile understands is accepted.

    Returns:
        (samples, sample_rate)

    Raises:
        ValueError: if the data is not a readable WAV
    """
    if isinstance(source, str):
        with open(source, 'rb') as f:
            raw = f.read()
    elif isinstance(source, (bytes, bytearray)):
        raw = bytes(source)
    else:
        raw = source.read()

    if len(raw) < 12 or raw[:4] != b'RIFF' or raw[8:12] != b'WAVE':
        raise ValueError("Not a RIFF/WAVE file")

    try:
        data, sample_rate = sf.read(io.BytesIO(raw), dtype='float64', always_2d=True)
    except RuntimeError as e:
        raise ValueError(f"Unreadable WAV: {e}") from e

    # mix down to mono
    return data.mean(axis=1), int(sample_rate)
