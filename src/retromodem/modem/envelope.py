"""
Carrier envelope around a framed transmission.

Layout of one block:

    [ carrier prefix | framed bytes | carrier suffix ]

The prefix and suffix are plain mark tone. With fading enabled the prefix
rises as (n / prefix)^2 and the suffix falls as (1 - n / suffix)^2, which
keeps the analog stage from thumping when it switches on.
"""

import logging

import numpy as np

from .config import TransmissionConfig
from .framing import EXHAUSTED, FrameEncoder
from .synthesizer import ToneSynthesizer

logger = logging.getLogger(__name__)


def rise_ramp(length: int) -> np.ndarray:
    return (np.arange(length, dtype=np.float64) / length) ** 2


def fall_ramp(length: int) -> np.ndarray:
    return (1.0 - np.arange(length, dtype=np.float64) / length) ** 2


class EnvelopeShaper:
    """
    Builds one complete sample block from a frame encoder.

    The total size is fixed up front from the pending byte count. If the
    encoder runs dry early, or bytes remain once the body is full, the
    mismatch is logged and the remaining slots are padded with carrier.
    """

    def __init__(self, config: TransmissionConfig):
        self.config = config

    def shape(self, encoder: FrameEncoder, synthesizer: ToneSynthesizer) -> np.ndarray:
        config = self.config
        samples_per_bit = config.samples_per_bit
        if config.is_degenerate:
            logger.warning(
                f"Degenerate config: {config.sample_rate} Hz sample rate "
                f"cannot carry {config.baud_rate} baud"
            )
            return np.zeros(0, dtype=np.float32)

        byte_count = encoder.pending_count
        prefix_length = config.prefix_samples
        suffix_length = config.suffix_samples
        total = config.total_samples(byte_count)
        body_end = total - suffix_length

        logger.debug(
            f"Framing {byte_count} bytes: {samples_per_bit} samples per bit, "
            f"prefix {prefix_length}, suffix {suffix_length}, total {total}"
        )

        block = np.zeros(total, dtype=np.float32)
        carrier = config.carrier_tone

        if prefix_length:
            gain = rise_ramp(prefix_length) if config.fade_carrier else 1.0
            synthesizer.fill(block[:prefix_length], carrier, gain)

        position = prefix_length
        exhausted_at = None
        while position < body_end:
            tone = encoder.advance()
            if tone is EXHAUSTED:
                exhausted_at = position
                break
            synthesizer.fill(block[position:position + samples_per_bit], tone)
            position += samples_per_bit

        if exhausted_at is not None:
            logger.warning(
                f"Sample budget too large: encoder ran dry at sample {exhausted_at} "
                f"of {body_end}, padding with carrier"
            )
            synthesizer.fill(block[position:body_end], carrier)
            position = body_end

        if encoder.pending_count or encoder.frame.bit_cursor < encoder.bits_per_frame:
            logger.warning(
                f"Sample budget too small: {encoder.pending_count} bytes still pending "
                f"at sample {position} of {total}"
            )

        if suffix_length:
            gain = fall_ramp(suffix_length) if config.fade_carrier else 1.0
            synthesizer.fill(block[body_end:], carrier, gain)

        return block


def render(data: bytes, config: TransmissionConfig) -> np.ndarray:
    """Generate the full sample block for data with a fresh phase."""
    encoder = FrameEncoder(config, data)
    return EnvelopeShaper(config).shape(encoder, ToneSynthesizer(config))
