# AFSK encode/synthesize/stream pipeline
from .config import TransmissionConfig, Tone, ToneRole, Waveform, Encoding
from .framing import FrameEncoder, UnreachableFrameState, EXHAUSTED
from .synthesizer import ToneSynthesizer
from .envelope import EnvelopeShaper
from .sample_queue import SampleQueue
from .session import PlaybackSession, SessionEvent
from .wavfile import WaveFileWriter, SampleFormat, read_wav
from .decoder import AFSKDecoder

__all__ = [
    'TransmissionConfig', 'Tone', 'ToneRole', 'Waveform', 'Encoding',
    'FrameEncoder', 'UnreachableFrameState', 'EXHAUSTED',
    'ToneSynthesizer', 'EnvelopeShaper', 'SampleQueue',
    'PlaybackSession', 'SessionEvent',
    'WaveFileWriter', 'SampleFormat', 'read_wav',
    'AFSKDecoder',
]
