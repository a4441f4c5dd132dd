"""
Tests for environment settings
"""

from retromodem.settings import ModemSettings


class TestModemSettings:
    """Tests for ModemSettings.from_env."""

    def test_defaults(self, monkeypatch):
        for name in ('MODEM_BAUD', 'MODEM_DEVICE', 'MODEM_PORT', 'MODEM_VOLUME'):
            monkeypatch.delenv(name, raising=False)

        settings = ModemSettings.from_env()

        assert settings.baud == 300
        assert settings.device is None
        assert settings.port == 5000

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv('MODEM_BAUD', '1200')
        monkeypatch.setenv('MODEM_DEVICE', 'USB Audio Device')
        monkeypatch.setenv('MODEM_WAVEFORM', 'square')
        monkeypatch.setenv('MODEM_DEBUG', 'yes')

        settings = ModemSettings.from_env()

        assert settings.baud == 1200
        assert settings.device == 'USB Audio Device'
        assert settings.waveform == 'square'
        assert settings.debug is True

    def test_invalid_number_falls_back(self, monkeypatch):
        monkeypatch.setenv('MODEM_VOLUME', 'loud')
        assert ModemSettings.from_env().volume == 0.75

    def test_transmission_options_feed_configure(self, session, monkeypatch):
        monkeypatch.setenv('MODEM_ENCODING', '8p1')
        monkeypatch.setenv('MODEM_MARK_FREQ', '1270')
        monkeypatch.setenv('MODEM_SPACE_FREQ', '1070')

        config = session.configure(ModemSettings.from_env().transmission_options())

        assert config.bits_per_frame == 11
        assert config.mark_freq == 1270
        assert config.space_freq == 1070
