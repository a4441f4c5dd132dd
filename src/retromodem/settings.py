"""
Runtime settings.

Read from MODEM_* environment variables with defaults matching the modem
constants.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .modem.constants import (
    BAUD_RATE, ANSWERING_MARK_FREQ, ANSWERING_SPACE_FREQ, DEFAULT_VOLUME
)

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return cast(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}, using {default}")
        return default


@dataclass
class ModemSettings:
    """Settings for the modem service."""

    # Server
    host: str = '127.0.0.1'
    port: int = 5000
    debug: bool = False
    log_level: str = 'INFO'

    # Output
    device: Optional[str] = None

    # Transmission
    baud: int = BAUD_RATE
    mark_freq: float = ANSWERING_MARK_FREQ
    space_freq: float = ANSWERING_SPACE_FREQ
    volume: float = DEFAULT_VOLUME
    waveform: str = 'sine'
    encoding: str = '8n1'

    @classmethod
    def from_env(cls) -> 'ModemSettings':
        return cls(
            host=os.getenv('MODEM_HOST', cls.host),
            port=_env_number('MODEM_PORT', cls.port, int),
            debug=_env_bool('MODEM_DEBUG', cls.debug),
            log_level=os.getenv('MODEM_LOG_LEVEL', cls.log_level).upper(),
            device=os.getenv('MODEM_DEVICE') or None,
            baud=_env_number('MODEM_BAUD', cls.baud, int),
            mark_freq=_env_number('MODEM_MARK_FREQ', cls.mark_freq, float),
            space_freq=_env_number('MODEM_SPACE_FREQ', cls.space_freq, float),
            volume=_env_number('MODEM_VOLUME', cls.volume, float),
            waveform=os.getenv('MODEM_WAVEFORM', cls.waveform),
            encoding=os.getenv('MODEM_ENCODING', cls.encoding),
        )

    def transmission_options(self) -> Dict[str, Any]:
        """Options in the form PlaybackSession.configure() takes."""
        return {
            'baud': self.baud,
            'mark_freq': self.mark_freq,
            'space_freq': self.space_freq,
            'volume': self.volume,
            'waveform': self.waveform,
            'encoding': self.encoding,
        }
