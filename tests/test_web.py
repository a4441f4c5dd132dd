"""
Tests for the Flask control surface
"""

import base64
import io

import pytest

from retromodem.modem import TransmissionConfig, WaveFileWriter
from retromodem.modem.envelope import render
from retromodem.settings import ModemSettings
from retromodem.web import create_app


@pytest.fixture
def client(session):
    app = create_app(session=session, settings=ModemSettings())
    app.config['TESTING'] = True
    return app.test_client()


class TestDeviceRoutes:
    """Tests for device listing and selection."""

    def test_list_devices(self, client):
        response = client.get('/api/devices')
        data = response.get_json()

        assert response.status_code == 200
        assert data['audio_available'] is True
        assert data['devices'][0]['name'] == 'Built-in Output'
        assert data['devices'][0]['is_default'] is True

    def test_select_device(self, client):
        response = client.post('/api/device', json={'name': 'USB Audio Device'})
        data = response.get_json()

        assert data['success'] is True
        assert data['current'] == 'USB Audio Device'
        assert data['config']['sample_rate'] == 48000

    def test_select_unknown_device(self, client):
        response = client.post('/api/device', json={'name': 'Missing'})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_refresh(self, client):
        data = client.post('/api/devices/refresh').get_json()
        assert len(data['devices']) == 2


class TestConfigRoutes:
    """Tests for transmission settings."""

    def test_get_defaults(self, client):
        config = client.get('/api/config').get_json()['config']
        assert config['baud'] == 300
        assert config['mark_freq'] == 2225
        assert config['space_freq'] == 2025
        assert config['encoding'] == '8n1'

    def test_update(self, client):
        response = client.post('/api/config', json={
            'baud': 1200, 'waveform': 'triangle', 'volume': 0.5, 'encoding': '8p1'
        })
        config = response.get_json()['config']

        assert config['baud'] == 1200
        assert config['waveform'] == 'triangle'
        assert config['volume'] == 0.5
        assert config['encoding'] == '8p1'

    def test_bad_encoding(self, client):
        response = client.post('/api/config', json={'encoding': 'bogus'})
        assert response.status_code == 400

    def test_nan_volume_becomes_silence(self, client):
        response = client.post('/api/config', data='{"volume": NaN}',
                               content_type='application/json')
        assert response.get_json()['config']['volume'] == 0.0


class TestPlaybackRoutes:
    """Tests for send/stop/status."""

    def test_send_and_status(self, client, backend):
        response = client.post('/api/send', json={'hex': '41 42'})
        data = response.get_json()

        assert data['success'] is True
        assert data['bytes'] == 2
        assert backend.start_calls == 1

        status = client.get('/api/status').get_json()
        assert status['active'] is True
        assert status['queued_samples'] == data['queued_samples']

    def test_status_finishes_drained_playback(self, client, backend):
        client.post('/api/send', json={'hex': '41'})
        backend.pump(100000)

        status = client.get('/api/status').get_json()

        assert status['active'] is False
        assert backend.stop_calls == [False]

    def test_stop(self, client, backend):
        client.post('/api/send', json={'hex': '41'})
        data = client.post('/api/stop').get_json()

        assert data['active'] is False
        assert client.get('/api/status').get_json()['queued_samples'] == 0

    def test_send_requires_hex(self, client):
        assert client.post('/api/send', json={}).status_code == 400
        assert client.post('/api/send', json={'hex': 'xyz'}).status_code == 400


class TestEncodeDecodeRoutes:
    """Tests for offline WAV rendering and decoding."""

    def test_encode_returns_wav(self, client):
        data = client.post('/api/encode', json={'hex': '48 49'}).get_json()

        wav = base64.b64decode(data['audio'])
        assert data['success'] is True
        assert wav[:4] == b'RIFF'
        assert data['samples'] == TransmissionConfig().total_samples(2)

    def test_encode_float(self, client):
        data = client.post('/api/encode', json={'hex': '00', 'sample_format': 'float32'}).get_json()
        wav = base64.b64decode(data['audio'])
        assert wav[20:22] == b'\x03\x00'

    def test_encode_unknown_format(self, client):
        response = client.post('/api/encode', json={'hex': '00', 'sample_format': 'mp3'})
        assert response.status_code == 400

    def test_encode_decode_roundtrip(self, client):
        encoded = client.post('/api/encode', json={'hex': 'a9 00 8d'}).get_json()
        decoded = client.post('/api/decode', json={'audio': encoded['audio']}).get_json()

        assert decoded['success'] is True
        assert decoded['hex'] == 'a9008d'

    def test_decode_upload(self, client):
        config = TransmissionConfig()
        wav = WaveFileWriter(config.sample_rate).to_bytes(render(b'OK', config))

        response = client.post(
            '/api/decode',
            data={'file': (io.BytesIO(wav), 'ok.wav')},
            content_type='multipart/form-data'
        )

        assert response.get_json()['hex'] == b'OK'.hex()

    def test_decode_garbage(self, client):
        audio = base64.b64encode(b'garbage').decode('utf-8')
        response = client.post('/api/decode', json={'audio': audio})
        assert response.status_code == 400
