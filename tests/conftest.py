"""
Shared pytest fixtures.
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from retromodem.audio import AudioBackend, DeviceInfo
from retromodem.modem import PlaybackSession


class FakeBackend(AudioBackend):
    """
    In-process stand-in for the audio runtime.

    pump() plays the part of the realtime thread, calling the session's
    fill callback with a runtime-owned buffer.
    """

    def __init__(self, devices=None, available=True, fail_open=False, fail_start=False):
        self.devices = devices if devices is not None else [
            DeviceInfo(0, 'Built-in Output', True, 2, 44100.0),
            DeviceInfo(1, 'USB Audio Device', False, 2, 48000.0),
        ]
        self._available = available
        self.fail_open = fail_open
        self.fail_start = fail_start
        self.opened_id = None
        self.channels = None
        self.start_calls = 0
        self.stop_calls = []
        self._fill = None
        self._open = False
        self._started = False
        self._rate = None

    @property
    def available(self):
        return self._available

    @property
    def is_open(self):
        return self._open

    @property
    def is_started(self):
        return self._started

    @property
    def sample_rate(self):
        return self._rate if self._open else None

    def list_devices(self):
        return list(self.devices)

    def open(self, device_id, sample_rate, channels, fill):
        if self.fail_open:
            return False
        device = next(d for d in self.devices if d.device_id == device_id)
        self.opened_id = device_id
        self.channels = channels
        self._rate = sample_rate or int(device.default_sample_rate)
        self._fill = fill
        self._open = True
        return True

    def start(self):
        if self.fail_start:
            return False
        self.start_calls += 1
        self._started = True
        return True

    def stop(self, immediate=False):
        self.stop_calls.append(immediate)
        self._started = False

    def close(self):
        self._open = False
        self._started = False

    def pump(self, frames, channels=1):
        """Pull one buffer the way the realtime thread would."""
        buffer = np.full((frames, channels), 7.0, dtype=np.float32)
        self._fill(buffer, frames)
        return buffer


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(backend):
    return PlaybackSession(backend=backend)


@pytest.fixture
def make_backend():
    """Factory for backends with non-default behaviour."""
    return FakeBackend
