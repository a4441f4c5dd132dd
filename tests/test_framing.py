"""
Tests for byte framing
"""

import pytest

from retromodem.modem import (
    TransmissionConfig, Tone, ToneRole, Encoding,
    FrameEncoder, UnreachableFrameState, EXHAUSTED
)
from retromodem.modem.framing import ByteFrame, even_parity_bit, frame_tones


def decode_8n1(tones):
    """Reference decoding of a single 8N1 frame."""
    assert len(tones) == 10
    assert tones[0].is_space
    assert tones[9].is_mark
    value = 0
    for i, tone in enumerate(tones[1:9]):
        if tone.is_mark:
            value |= 1 << i
    return value


class TestFrameEncoder:
    """Tests for FrameEncoder."""

    def test_letter_a_tone_sequence(self):
        """0x41 goes out start, 1,0,0,0,0,0,1,0 LSB-first, stop."""
        tones = frame_tones(b'A', TransmissionConfig())

        mark, space = Tone.ANSWERING_MARK, Tone.ANSWERING_SPACE
        assert tones == [
            Tone.START_BIT,
            mark, space, space, space, space, space, mark, space,
            Tone.STOP_BIT
        ]

    def test_every_byte_round_trips_under_8n1(self):
        config = TransmissionConfig()
        for value in range(256):
            tones = frame_tones(bytes([value]), config)
            assert decode_8n1(tones) == value

    def test_start_and_stop_resolve_to_space_and_mark(self):
        config = TransmissionConfig()
        assert config.frequency(Tone.START_BIT) == config.space_freq
        assert config.frequency(Tone.STOP_BIT) == config.mark_freq

    def test_frames_are_consumed_in_order(self):
        tones = frame_tones(b'\x00\xff', TransmissionConfig())

        assert len(tones) == 20
        assert all(t.is_space for t in tones[0:9])
        assert tones[9] is Tone.STOP_BIT
        assert tones[10] is Tone.START_BIT
        assert all(t.is_mark for t in tones[11:20])

    def test_exhausted_after_last_frame(self):
        encoder = FrameEncoder(TransmissionConfig(), b'Z')
        for _ in range(10):
            assert encoder.advance() is not EXHAUSTED
        assert encoder.advance() is EXHAUSTED
        assert encoder.advance() is EXHAUSTED

    def test_empty_queue_is_exhausted_immediately(self):
        encoder = FrameEncoder(TransmissionConfig(), b'')
        assert encoder.advance() is EXHAUSTED
        assert not EXHAUSTED

    def test_pending_count_drops_as_frames_start(self):
        encoder = FrameEncoder(TransmissionConfig(), b'AB')
        assert encoder.pending_count == 2
        encoder.advance()
        assert encoder.pending_count == 1
        assert encoder.frame == ByteFrame(current_byte=0x41, bit_cursor=1)

    def test_originating_role_uses_low_pair(self):
        config = TransmissionConfig(role=ToneRole.ORIGINATING)
        tones = frame_tones(b'\x01', config)

        assert tones[1] is Tone.ORIGINATING_MARK
        assert tones[2] is Tone.ORIGINATING_SPACE
        assert config.frequency(Tone.START_BIT) == 1070
        assert config.frequency(Tone.STOP_BIT) == 1270


class TestParityFraming:
    """Tests for 8 data bits + even parity."""

    def test_frame_is_eleven_bits(self):
        config = TransmissionConfig(encoding=Encoding.EIGHT_WITH_PARITY)
        assert config.bits_per_frame == 11
        assert len(frame_tones(b'A', config)) == 11

    def test_even_parity_bit(self):
        assert even_parity_bit(0x41) == 0   # two ones
        assert even_parity_bit(0x07) == 1   # three ones
        assert even_parity_bit(0x00) == 0
        assert even_parity_bit(0xFF) == 0

    def test_parity_position_carries_parity(self):
        config = TransmissionConfig(encoding=Encoding.EIGHT_WITH_PARITY)

        even = frame_tones(b'\x41', config)
        odd = frame_tones(b'\x07', config)

        assert even[9] is Tone.ANSWERING_SPACE
        assert odd[9] is Tone.ANSWERING_MARK
        assert even[10] is Tone.STOP_BIT
        assert odd[10] is Tone.STOP_BIT

    def test_marks_in_data_and_parity_are_even(self):
        config = TransmissionConfig(encoding=Encoding.EIGHT_WITH_PARITY)
        for value in range(256):
            tones = frame_tones(bytes([value]), config)
            marks = sum(1 for tone in tones[1:10] if tone is Tone.ANSWERING_MARK)
            assert marks % 2 == 0, hex(value)


class TestUnreachableStates:
    """Bit positions outside the framing table fail loudly."""

    def test_position_past_8n1_frame(self):
        encoder = FrameEncoder(TransmissionConfig(), b'')
        with pytest.raises(UnreachableFrameState):
            encoder.tone_at(ByteFrame(0x41, 10), Encoding.EIGHT_N1)

    def test_position_past_parity_frame(self):
        config = TransmissionConfig(encoding=Encoding.EIGHT_WITH_PARITY)
        encoder = FrameEncoder(config, b'')
        with pytest.raises(UnreachableFrameState):
            encoder.tone_at(ByteFrame(0x41, 11), Encoding.EIGHT_WITH_PARITY)

    def test_is_an_assertion(self):
        encoder = FrameEncoder(TransmissionConfig(), b'')
        with pytest.raises(AssertionError):
            encoder.tone_at(ByteFrame(0, 42), Encoding.EIGHT_N1)
