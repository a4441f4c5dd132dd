"""
Output device boundary.

The audio runtime owns the realtime thread. We hand it a fill(buffer,
frame_count) callable and it calls back at its own cadence; nothing here
creates threads of its own.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

# fill(buffer, frame_count), invoked on the runtime's thread
FillCallback = Callable[[np.ndarray, int], None]

SAMPLE_FORMAT = 'float32'


@dataclass
class DeviceInfo:
    """An output device the runtime can open."""
    device_id: int
    name: str
    is_default: bool = False
    max_output_channels: int = 0
    default_sample_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.device_id,
            'name': self.name,
            'is_default': self.is_default,
            'max_output_channels': self.max_output_channels,
            'default_sample_rate': self.default_sample_rate,
        }


class AudioBackend:
    """
    Pull-model output device interface.

    Subclasses bind a platform audio runtime. open() reports failure as a
    boolean; retrying is up to the caller.
    """

    @property
    def available(self) -> bool:
        return False

    @property
    def is_open(self) -> bool:
        return False

    @property
    def is_started(self) -> bool:
        return False

    @property
    def sample_rate(self) -> Optional[int]:
        return None

    def list_devices(self) -> List[DeviceInfo]:
        return []

    def open(self, device_id: Optional[int], sample_rate: Optional[int],
             channels: int, fill: FillCallback) -> bool:
        raise NotImplementedError

    def start(self) -> bool:
        raise NotImplementedError

    def stop(self, immediate: bool = False):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


class SoundDeviceBackend(AudioBackend):
    """
    PortAudio output through sounddevice.

    The PortAudio shared library is loaded on construction; if it is not
    installed on the host, available stays False and every open() fails.
    """

    def __init__(self):
        self._sd = None
        self._stream = None
        try:
            import sounddevice
            self._sd = sounddevice
        except (ImportError, OSError) as e:
            logger.warning(f"Audio not available: {e}")

    @property
    def available(self) -> bool:
        return self._sd is not None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def is_started(self) -> bool:
        return self._stream is not None and self._stream.active

    @property
    def sample_rate(self) -> Optional[int]:
        if self._stream is None:
            return None
        return int(self._stream.samplerate)

    def list_devices(self) -> List[DeviceInfo]:
        if not self.available:
            return []

        try:
            devices = self._sd.query_devices()
            default_output = self._sd.default.device[1]
        except self._sd.PortAudioError as e:
            logger.warning(f"Failed to get list of devices: {e}")
            return []

        if default_output is None or default_output < 0:
            try:
                default_output = self._sd.query_devices(kind='output')['index']
            except (self._sd.PortAudioError, ValueError):
                default_output = None

        result = []
        for index, device in enumerate(devices):
            if device['max_output_channels'] < 1:
                continue
            result.append(DeviceInfo(
                device_id=index,
                name=device['name'],
                is_default=(index == default_output),
                max_output_channels=device['max_output_channels'],
                default_sample_rate=device['default_samplerate'],
            ))
        return result

    def open(self, device_id: Optional[int], sample_rate: Optional[int],
             channels: int, fill: FillCallback) -> bool:
        if not self.available:
            logger.warning("Audio not available, cannot open device")
            return False

        self.close()

        def callback(outdata, frames, time_info, status):
            if status:
                logger.debug(f"Output status: {status}")
            fill(outdata, frames)

        try:
            if sample_rate is None:
                info = self._sd.query_devices(device_id, kind='output')
                sample_rate = int(info['default_samplerate'])
            self._stream = self._sd.OutputStream(
                samplerate=sample_rate,
                device=device_id,
                channels=channels,
                dtype=SAMPLE_FORMAT,
                callback=callback,
            )
        except (self._sd.PortAudioError, ValueError) as e:
            logger.warning(f"Failed to init device {device_id}: {e}")
            self._stream = None
            return False

        logger.info(f"Opened output device {device_id} at {self.sample_rate} Hz")
        return True

    def start(self) -> bool:
        if self._stream is None:
            return False
        if self._stream.active:
            return True
        try:
            self._stream.start()
        except self._sd.PortAudioError as e:
            logger.warning(f"Failed to start device: {e}")
            return False
        return True

    def stop(self, immediate: bool = False):
        if self._stream is None or self._stream.stopped:
            return
        try:
            if immediate:
                self._stream.abort()
            else:
                self._stream.stop()
        except self._sd.PortAudioError as e:
            logger.warning(f"Failed to stop device: {e}")

    def close(self):
        if self._stream is None:
            return
        try:
            self._stream.close()
        except self._sd.PortAudioError as e:
            logger.warning(f"Failed to close device: {e}")
        self._stream = None
