"""
Transmission configuration and tone vocabulary.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict

from .constants import (
    SAMPLE_RATE, CHANNEL_COUNT, BAUD_RATE,
    ORIGINATING_MARK_FREQ, ORIGINATING_SPACE_FREQ,
    ANSWERING_MARK_FREQ, ANSWERING_SPACE_FREQ,
    CARRIER_PREFIX_BITS, CARRIER_SUFFIX_BITS,
    BITS_PER_FRAME_8N1, BITS_PER_FRAME_PARITY,
    DEFAULT_VOLUME, LOUDNESS_EXPONENT
)

logger = logging.getLogger(__name__)


class Waveform(Enum):
    """Oscillator shapes."""
    SINE = 'sine'
    SQUARE = 'square'
    SAWTOOTH = 'sawtooth'
    TRIANGLE = 'triangle'


class Encoding(Enum):
    """Byte framing families."""
    EIGHT_N1 = '8n1'
    EIGHT_WITH_PARITY = '8p1'

    @property
    def bits_per_frame(self) -> int:
        if self is Encoding.EIGHT_N1:
            return BITS_PER_FRAME_8N1
        if self is Encoding.EIGHT_WITH_PARITY:
            return BITS_PER_FRAME_PARITY
        raise AssertionError(f"Unhandled encoding: {self}")


class ToneRole(Enum):
    """Which side of the Bell 103 link we speak as."""
    ORIGINATING = 'originating'
    ANSWERING = 'answering'


class Tone(Enum):
    """Logical tones produced by the frame encoder."""
    ORIGINATING_MARK = 'originating_mark'
    ORIGINATING_SPACE = 'originating_space'
    ANSWERING_MARK = 'answering_mark'
    ANSWERING_SPACE = 'answering_space'
    START_BIT = 'start_bit'
    STOP_BIT = 'stop_bit'
    SILENCE = 'silence'

    @property
    def is_mark(self) -> bool:
        return self in (Tone.ORIGINATING_MARK, Tone.ANSWERING_MARK, Tone.STOP_BIT)

    @property
    def is_space(self) -> bool:
        return self in (Tone.ORIGINATING_SPACE, Tone.ANSWERING_SPACE, Tone.START_BIT)


# aliases accepted by configure() for the encoding option
ENCODING_ALIASES = {
    '8n1': Encoding.EIGHT_N1,
    'eightn1': Encoding.EIGHT_N1,
    '8p1': Encoding.EIGHT_WITH_PARITY,
    '8+parity': Encoding.EIGHT_WITH_PARITY,
    '8e1': Encoding.EIGHT_WITH_PARITY,
    'parity': Encoding.EIGHT_WITH_PARITY,
}


def clamp_volume(volume: float) -> float:
    """Clamp to 0..1. NaN and infinities count as silence."""
    volume = float(volume)
    if not math.isfinite(volume):
        return 0.0
    return min(max(volume, 0.0), 1.0)


def perceived_volume(volume: float) -> float:
    """Map a 0..1 loudness setting onto an output amplitude."""
    volume = clamp_volume(volume)
    return min(max(volume ** LOUDNESS_EXPONENT, 0.0), 1.0)


@dataclass(frozen=True)
class TransmissionConfig:
    """
    Parameters for one transmission.

    Instances are immutable. A send() snapshots the config it starts with,
    so changing settings never rewrites samples that were already generated.
    """
    sample_rate: int = SAMPLE_RATE
    baud_rate: int = BAUD_RATE
    channel_count: int = CHANNEL_COUNT
    volume: float = DEFAULT_VOLUME  # 0..1, before the loudness curve
    waveform: Waveform = Waveform.SINE
    mark_freq: float = ANSWERING_MARK_FREQ
    space_freq: float = ANSWERING_SPACE_FREQ
    originating_mark_freq: float = ORIGINATING_MARK_FREQ
    originating_space_freq: float = ORIGINATING_SPACE_FREQ
    role: ToneRole = ToneRole.ANSWERING
    encoding: Encoding = Encoding.EIGHT_N1
    fade_carrier: bool = True
    carrier_prefix_bits: int = CARRIER_PREFIX_BITS
    carrier_suffix_bits: int = CARRIER_SUFFIX_BITS

    @property
    def samples_per_bit(self) -> int:
        if self.baud_rate <= 0:
            return 0
        return int(self.sample_rate) // int(self.baud_rate)

    @property
    def is_degenerate(self) -> bool:
        """True when a bit would be shorter than one sample."""
        return self.samples_per_bit < 1

    @property
    def bits_per_frame(self) -> int:
        return self.encoding.bits_per_frame

    @property
    def amplitude(self) -> float:
        return perceived_volume(self.volume)

    @property
    def prefix_samples(self) -> int:
        return self.carrier_prefix_bits * self.samples_per_bit

    @property
    def suffix_samples(self) -> int:
        return self.carrier_suffix_bits * self.samples_per_bit

    @property
    def carrier_tone(self) -> Tone:
        return self.mark_tone

    @property
    def mark_tone(self) -> Tone:
        if self.role is ToneRole.ORIGINATING:
            return Tone.ORIGINATING_MARK
        return Tone.ANSWERING_MARK

    @property
    def space_tone(self) -> Tone:
        if self.role is ToneRole.ORIGINATING:
            return Tone.ORIGINATING_SPACE
        return Tone.ANSWERING_SPACE

    def total_samples(self, byte_count: int) -> int:
        """Sample budget for one send() of byte_count bytes."""
        body = byte_count * self.bits_per_frame * self.samples_per_bit
        return body + self.prefix_samples + self.suffix_samples

    def frequency(self, tone: Tone) -> float:
        """Resolve a logical tone to Hz. Silence is 0 Hz."""
        if tone is Tone.SILENCE:
            return 0.0
        if tone is Tone.ANSWERING_MARK:
            return self.mark_freq
        if tone is Tone.ANSWERING_SPACE:
            return self.space_freq
        if tone is Tone.ORIGINATING_MARK:
            return self.originating_mark_freq
        if tone is Tone.ORIGINATING_SPACE:
            return self.originating_space_freq
        if tone is Tone.START_BIT:
            return self.frequency(self.space_tone)
        if tone is Tone.STOP_BIT:
            return self.frequency(self.mark_tone)
        raise AssertionError(f"Unhandled tone: {tone}")

    def with_options(self, options: Dict[str, Any]) -> 'TransmissionConfig':
        """
        Return a copy with user options applied.

        Recognised keys: baud, mark_freq, space_freq, volume, waveform,
        encoding, role, fade_carrier. Invalid baud/frequency values are
        ignored, an unknown waveform falls back to triangle, an unknown
        encoding raises ValueError.
        """
        changes: Dict[str, Any] = {}

        baud = options.get('baud')
        if baud is not None:
            if int(baud) <= 0:
                logger.warning(f"Ignoring invalid baud rate: {baud}")
            else:
                changes['baud_rate'] = int(baud)

        mark = options.get('mark_freq')
        space = options.get('space_freq')
        if mark is not None or space is not None:
            mark = self.mark_freq if mark is None else float(mark)
            space = self.space_freq if space is None else float(space)
            if mark <= 0 or space <= 0:
                logger.warning(f"Invalid frequencies: space={space} mark={mark}")
            else:
                changes['mark_freq'] = mark
                changes['space_freq'] = space

        volume = options.get('volume')
        if volume is not None:
            changes['volume'] = clamp_volume(volume)

        waveform = options.get('waveform')
        if waveform is not None:
            changes['waveform'] = parse_waveform(waveform)

        encoding = options.get('encoding')
        if encoding is not None:
            changes['encoding'] = parse_encoding(encoding)

        role = options.get('role')
        if role is not None:
            changes['role'] = role if isinstance(role, ToneRole) else ToneRole(str(role).lower())

        fade = options.get('fade_carrier')
        if fade is not None:
            changes['fade_carrier'] = bool(fade)

        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            'sample_rate': self.sample_rate,
            'baud': self.baud_rate,
            'channel_count': self.channel_count,
            'volume': self.volume,
            'amplitude': self.amplitude,
            'waveform': self.waveform.value,
            'mark_freq': self.mark_freq,
            'space_freq': self.space_freq,
            'role': self.role.value,
            'encoding': self.encoding.value,
            'fade_carrier': self.fade_carrier,
            'samples_per_bit': self.samples_per_bit,
        }


def parse_waveform(value: Any) -> Waveform:
    """Accept a Waveform, its name, or its index. Unknown values become triangle."""
    if isinstance(value, Waveform):
        return value
    members = list(Waveform)
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value < len(members):
            return members[value]
    elif isinstance(value, str):
        try:
            return Waveform(value.strip().lower())
        except ValueError:
            pass
    logger.warning(f"Invalid waveform {value!r}, defaulting to triangle")
    return Waveform.TRIANGLE


def parse_encoding(value: Any) -> Encoding:
    if isinstance(value, Encoding):
        return value
    key = str(value).strip().lower().replace(' ', '')
    if key in ENCODING_ALIASES:
        return ENCODING_ALIASES[key]
    raise ValueError(f"Unknown encoding: {value}")

