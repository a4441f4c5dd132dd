"""
Audio output devices.

Pull-model playback over the sounddevice/PortAudio binding.
"""

from .device import AudioBackend, DeviceInfo, SoundDeviceBackend

__all__ = ['AudioBackend', 'DeviceInfo', 'SoundDeviceBackend']
