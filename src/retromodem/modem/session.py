"""
Realtime playback session.

Two contexts touch a session:

- the control context (configure, send, stop, poll), one logical thread
- the audio runtime's realtime thread, which only ever calls the fill
  trampoline built by make_fill_callback()

Everything they share lives in SharedState behind one re-entrant lock.
When the realtime thread drains the queue it only sets a flag; the control
context notices it in poll() and tears the device down itself.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

import numpy as np

from ..audio.device import AudioBackend, DeviceInfo, FillCallback, SoundDeviceBackend
from .config import TransmissionConfig
from .envelope import EnvelopeShaper, render
from .framing import FrameEncoder
from .sample_queue import SampleQueue
from .synthesizer import ToneSynthesizer

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05  # seconds between finished-flag checks in wait()


class SessionEvent(Enum):
    """Notifications raised on the control context."""
    PROGRESS = 'progress'
    STOPPED = 'stopped'
    FINISHED = 'finished'
    DEVICES_UPDATED = 'devices_updated'


@dataclass
class SharedState:
    """State read by both the control context and the realtime callback."""
    config: TransmissionConfig = field(default_factory=TransmissionConfig)
    queue: SampleQueue = field(default_factory=SampleQueue)
    lock: threading.RLock = field(default_factory=threading.RLock)
    finished: threading.Event = field(default_factory=threading.Event)
    frames_to_send: int = 0
    progress: int = 0


def make_fill_callback(shared: SharedState) -> FillCallback:
    """Build the trampoline the audio runtime calls on its own thread."""

    def fill(buffer: np.ndarray, frame_count: int):
        with shared.lock:
            shared.queue.take(frame_count, buffer)
            remaining = len(shared.queue)
            if not shared.frames_to_send:
                return
            if remaining == 0:
                shared.progress = 100
                shared.finished.set()
            else:
                shared.progress = 100 - (100 * remaining // shared.frames_to_send)

    return fill


class PlaybackSession:
    """
    Owns configuration, the sample queue and the output device.

    Idle --send--> Active --drain--> Idle (finished)
                   Active --stop---> Idle (stopped)
    """

    def __init__(self, backend: Optional[AudioBackend] = None,
                 config: Optional[TransmissionConfig] = None):
        self.backend = backend if backend is not None else SoundDeviceBackend()
        self.shared = SharedState(config=config or TransmissionConfig())
        self._pending: Deque[int] = deque()
        self._listeners: Dict[SessionEvent, List[Callable[..., Any]]] = {
            event: [] for event in SessionEvent
        }
        self._devices: List[DeviceInfo] = []
        self._current_device: Optional[str] = None
        self._active = False
        self._last_progress = 0

        if self.backend.available:
            self.refresh_devices()

    # -- notifications ------------------------------------------------------

    def subscribe(self, event: SessionEvent, callback: Callable[..., Any]):
        self._listeners[event].append(callback)

    def _emit(self, event: SessionEvent, *args):
        for callback in list(self._listeners[event]):
            callback(*args)

    # -- state --------------------------------------------------------------

    @property
    def audio_available(self) -> bool:
        return self.backend.available

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def current_device(self) -> Optional[str]:
        return self._current_device

    @property
    def config(self) -> TransmissionConfig:
        with self.shared.lock:
            return self.shared.config

    @property
    def progress(self) -> int:
        with self.shared.lock:
            return self.shared.progress

    @property
    def queued_samples(self) -> int:
        with self.shared.lock:
            return len(self.shared.queue)

    def is_empty(self) -> bool:
        with self.shared.lock:
            return self.shared.queue.is_empty()

    # -- configuration ------------------------------------------------------

    def configure(self, options: Optional[Dict[str, Any]] = None, **kwargs) -> TransmissionConfig:
        """
        Update transmission settings.

        Takes effect on the next send(); samples already queued keep the
        settings they were generated with.
        """
        merged = dict(options or {})
        merged.update(kwargs)
        with self.shared.lock:
            self.shared.config = self.shared.config.with_options(merged)
            return self.shared.config

    # -- devices ------------------------------------------------------------

    def list_devices(self) -> List[DeviceInfo]:
        """Known output devices, platform default first."""
        return list(self._devices)

    def refresh_devices(self) -> List[DeviceInfo]:
        if not self.audio_available:
            logger.warning("Audio not available")
            return []

        devices = self.backend.list_devices()
        self._devices = sorted(devices, key=lambda d: not d.is_default)
        self._emit(SessionEvent.DEVICES_UPDATED, self.list_devices())
        return self.list_devices()

    def open_device(self, name: Optional[str] = None) -> bool:
        """
        Open an output device by name, or the default one.

        Returns False if the device is unknown or the runtime refuses it.
        """
        if not self.audio_available:
            logger.warning("Audio runtime not loaded, cannot open a device")
            return False

        device = self._find_device(name)
        if device is None:
            logger.warning(f"Invalid device {name!r}")
            return False

        if self._current_device == device.name and self.backend.is_open:
            return True

        logger.debug(f"Opening output device {device.name}")
        if self._active:
            self.stop()
        channels = self.config.channel_count
        opened = self.backend.open(
            device.device_id, None, channels, make_fill_callback(self.shared)
        )
        if not opened:
            self._current_device = None
            return False

        rate = self.backend.sample_rate
        if rate:
            with self.shared.lock:
                self.shared.config = replace(self.shared.config, sample_rate=int(rate))

        self._current_device = device.name
        logger.info(f"Got device {device.name}, sample rate {self.config.sample_rate}")
        return True

    def _find_device(self, name: Optional[str]) -> Optional[DeviceInfo]:
        if not self._devices:
            self.refresh_devices()
        for device in self._devices:
            if name is None and device.is_default:
                return device
            if name is not None and device.name == name:
                return device
        if name is None and self._devices:
            return self._devices[0]
        return None

    # -- transmission -------------------------------------------------------

    def render(self, data: bytes) -> np.ndarray:
        """Sample block for data under the current config. Touches no queue."""
        return render(bytes(data), self.config)

    def _generate(self, data: bytes) -> np.ndarray:
        # snapshot the config, then generate without holding the lock
        with self.shared.lock:
            config = self.shared.config

        self._pending.extend(bytes(data))
        encoder = FrameEncoder(config, self._pending)
        block = EnvelopeShaper(config).shape(encoder, ToneSynthesizer(config))
        self._pending = encoder.pending
        return block

    def send(self, data: bytes) -> bool:
        """
        Queue data for transmission.

        Starts the device if the queue was empty. Returns False when no
        device could be opened or nothing could be generated.
        """
        if not self.backend.is_open and not self.open_device(self._current_device):
            logger.warning("No output device open, dropping send")
            return False

        backlog = deque(self._pending)
        block = self._generate(data)
        if block.size == 0:
            # a rejected send must not leak its bytes into the next one
            self._pending = backlog
            logger.warning("Nothing generated, not starting playback")
            return False

        with self.shared.lock:
            was_empty = self.shared.queue.is_empty()
            self.shared.queue.append(block)
            self.shared.frames_to_send = len(self.shared.queue)
            self.shared.finished.clear()

        if was_empty and not self.backend.is_started:
            if not self.backend.start():
                logger.warning("Failed to start device")
                self._teardown(immediate=True)
                return False

        self._active = True
        return True

    def send_hex(self, text: str) -> bool:
        """Send hex-encoded bytes. Whitespace is ignored."""
        return self.send(bytes.fromhex(''.join(text.split())))

    def stop(self):
        """
        Stop immediately. Queued samples are discarded, not played out.
        """
        self._teardown(immediate=True)
        self._emit(SessionEvent.STOPPED)

    def _teardown(self, immediate: bool):
        self.backend.stop(immediate=immediate)
        with self.shared.lock:
            self.shared.queue.clear()
            self.shared.finished.clear()
            self.shared.frames_to_send = 0
            self.shared.progress = 0
        self._pending.clear()
        self._active = False
        self._last_progress = 0

    def poll(self) -> bool:
        """
        Handle signals raised by the realtime thread.

        Call from the control context. Returns True while still active.
        """
        with self.shared.lock:
            progress = self.shared.progress
            finished = self.shared.finished.is_set()

        if self._active and progress != self._last_progress:
            self._last_progress = progress
            self._emit(SessionEvent.PROGRESS, progress)

        if finished and not self._active:
            # drained while idle, e.g. the runtime pulled once more after stop()
            self.shared.finished.clear()
        elif finished:
            self._teardown(immediate=False)
            self._emit(SessionEvent.FINISHED)

        return self._active

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Pump poll() until the queue drains. Returns True once idle."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.poll():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            self.shared.finished.wait(POLL_INTERVAL)
        return True

    def close(self):
        if self._active:
            self.stop()
        self.backend.close()
        self._current_device = None
