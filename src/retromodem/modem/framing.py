"""
Byte framing for the AFSK link.

Each byte goes out as a start bit (space), eight data bits LSB-first
(1 = mark, 0 = space), an optional even-parity bit, and a stop bit (mark).
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Union

from .config import Encoding, Tone, TransmissionConfig
from .constants import DATA_BITS


class UnreachableFrameState(AssertionError):
    """Bit position and encoding combination that framing can never produce."""


class _Exhausted:
    """Sentinel returned once the pending byte queue runs dry."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'EXHAUSTED'

    def __bool__(self):
        return False


EXHAUSTED = _Exhausted()


@dataclass
class ByteFrame:
    """The byte being framed and the bit position that goes out next."""
    current_byte: int = 0
    bit_cursor: int = 0


def even_parity_bit(byte: int) -> int:
    """Parity bit that makes the count of ones (data + parity) even."""
    # 1 (mark) when the data holds an odd number of ones
    return bin(byte & 0xFF).count('1') & 1


class FrameEncoder:
    """
    Turns a FIFO of pending bytes into a sequence of logical tones.

    Call advance() once per bit period. It returns the tone for that bit
    and moves the cursor, pulling the next byte from the queue when a frame
    completes. EXHAUSTED is returned once nothing is left to frame.
    """

    def __init__(self, config: TransmissionConfig, pending: Iterable[int] = ()):
        self.config = config
        self.encoding = config.encoding
        self.bits_per_frame = config.encoding.bits_per_frame
        self.pending: Deque[int] = deque(pending)
        # cursor past the end forces the first advance() to load a byte
        self.frame = ByteFrame(bit_cursor=self.bits_per_frame)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    def advance(self) -> Union[Tone, _Exhausted]:
        if self.frame.bit_cursor >= self.bits_per_frame:
            if not self.pending:
                return EXHAUSTED
            self.frame = ByteFrame(current_byte=self.pending.popleft(), bit_cursor=0)

        tone = self.tone_at(self.frame, self.encoding)
        self.frame.bit_cursor += 1
        return tone

    def tone_at(self, frame: ByteFrame, encoding: Encoding) -> Tone:
        cursor = frame.bit_cursor
        mark = self.config.mark_tone
        space = self.config.space_tone

        if cursor == 0:
            return Tone.START_BIT

        if 1 <= cursor <= DATA_BITS:
            bit = (frame.current_byte >> (cursor - 1)) & 1
            return mark if bit else space

        if encoding is Encoding.EIGHT_N1:
            if cursor == DATA_BITS + 1:
                return Tone.STOP_BIT
        elif encoding is Encoding.EIGHT_WITH_PARITY:
            if cursor == DATA_BITS + 1:
                return mark if even_parity_bit(frame.current_byte) else space
            if cursor == DATA_BITS + 2:
                return Tone.STOP_BIT

        raise UnreachableFrameState(
            f"No tone for bit {cursor} under {encoding.name} "
            f"(byte 0x{frame.current_byte:02x})"
        )


def frame_tones(data: bytes, config: TransmissionConfig) -> list:
    """Full tone sequence for data, without carrier."""
    encoder = FrameEncoder(config, data)
    tones = []
    while True:
        tone = encoder.advance()
        if tone is EXHAUSTED:
            return tones
        tones.append(tone)
