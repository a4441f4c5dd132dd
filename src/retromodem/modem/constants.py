"""
AFSK modem constants

Tone pairs follow the Bell 103 convention: the originating side transmits on
the low pair, the answering side on the high pair.
"""

# Sample generation
SAMPLE_RATE = 44100      # Hz, overridden by the opened device's native rate
CHANNEL_COUNT = 1
BAUD_RATE = 300          # bits per second

# Bell 103 tone pairs (Hz)
ORIGINATING_MARK_FREQ = 1270
ORIGINATING_SPACE_FREQ = 1070
ANSWERING_MARK_FREQ = 2225
ANSWERING_SPACE_FREQ = 2025

# Carrier surrounding each transmission, in bit periods.
# Sound cards tend to pop when their output stage turns on or off.
CARRIER_PREFIX_BITS = 100
CARRIER_SUFFIX_BITS = 100

# Framing
DATA_BITS = 8
BITS_PER_FRAME_8N1 = 10      # start + 8 data + stop
BITS_PER_FRAME_PARITY = 11   # start + 8 data + parity + stop

# Amplitude
DEFAULT_VOLUME = 0.75
LOUDNESS_EXPONENT = 0.67     # perceived loudness -> voltage
