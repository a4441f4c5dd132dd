"""
Flask routes for the modem control surface
"""

import base64
import binascii

from flask import Blueprint, current_app, jsonify, request

from ..modem import AFSKDecoder, SampleFormat, WaveFileWriter

api_bp = Blueprint('api', __name__)

SAMPLE_FORMATS = {
    'pcm16': SampleFormat.PCM_16,
    'float32': SampleFormat.FLOAT_32,
}


def _session():
    return current_app.extensions['modem_session']


def _error(message, status=400):
    return jsonify({'success': False, 'error': message}), status


def _hex_payload(data) -> bytes:
    if not data or 'hex' not in data:
        raise KeyError('hex')
    return bytes.fromhex(''.join(str(data['hex']).split()))


@api_bp.route('/devices', methods=['GET'])
def list_devices():
    """List output devices, platform default first."""
    session = _session()
    return jsonify({
        'success': True,
        'audio_available': session.audio_available,
        'current': session.current_device,
        'devices': [d.to_dict() for d in session.list_devices()]
    })


@api_bp.route('/devices/refresh', methods=['POST'])
def refresh_devices():
    session = _session()
    devices = session.refresh_devices()
    return jsonify({
        'success': True,
        'devices': [d.to_dict() for d in devices]
    })


@api_bp.route('/device', methods=['POST'])
def select_device():
    """
    Open an output device.

    Request JSON:
        name: str - device name (omit for the platform default)
    """
    data = request.get_json(silent=True) or {}
    session = _session()

    if not session.open_device(data.get('name')):
        return _error(f"Could not open device: {data.get('name') or 'default'}")

    return jsonify({
        'success': True,
        'current': session.current_device,
        'config': session.config.to_dict()
    })


@api_bp.route('/config', methods=['GET'])
def get_config():
    return jsonify({'success': True, 'config': _session().config.to_dict()})


@api_bp.route('/config', methods=['POST'])
def update_config():
    """
    Change transmission settings. Applies to the next send.

    Request JSON (all optional):
        baud: int
        mark_freq: float
        space_freq: float
        volume: float - 0..1
        waveform: str - sine, square, sawtooth, triangle
        encoding: str - 8n1 or 8p1
    """
    data = request.get_json(silent=True) or {}
    try:
        config = _session().configure(data)
    except ValueError as e:
        return _error(str(e))

    return jsonify({'success': True, 'config': config.to_dict()})


@api_bp.route('/send', methods=['POST'])
def send_bytes():
    """
    Queue bytes for playback.

    Request JSON:
        hex: str - bytes as hex, whitespace ignored
    """
    session = _session()
    try:
        payload = _hex_payload(request.get_json(silent=True))
    except KeyError:
        return _error('No hex payload provided')
    except ValueError as e:
        return _error(f'Invalid hex: {e}')

    session.poll()
    if not session.send(payload):
        return _error('Playback could not start')

    return jsonify({
        'success': True,
        'bytes': len(payload),
        'queued_samples': session.queued_samples,
    })


@api_bp.route('/stop', methods=['POST'])
def stop_playback():
    session = _session()
    session.stop()
    return jsonify({'success': True, 'active': session.is_active})


@api_bp.route('/status', methods=['GET'])
def get_status():
    """
    Playback status. Polling this also finishes drained transmissions.
    """
    session = _session()
    session.poll()
    return jsonify({
        'success': True,
        'active': session.is_active,
        'progress': session.progress,
        'queued_samples': session.queued_samples,
        'device': session.current_device,
    })


@api_bp.route('/encode', methods=['POST'])
def encode_wav():
    """
    Render bytes to a WAV without playing them.

    Request JSON:
        hex: str - bytes as hex
        sample_format: str - pcm16 or float32 (optional, default pcm16)

    Returns:
        JSON with base64 WAV audio
    """
    data = request.get_json(silent=True) or {}
    session = _session()

    try:
        payload = _hex_payload(data)
        sample_format = SAMPLE_FORMATS[data.get('sample_format', 'pcm16')]
    except KeyError as e:
        return _error(f'Missing or unknown field: {e}')
    except ValueError as e:
        return _error(f'Invalid hex: {e}')

    config = session.config
    samples = session.render(payload)
    writer = WaveFileWriter(config.sample_rate, sample_format=sample_format)
    wav_bytes = writer.to_bytes(samples)

    return jsonify({
        'success': True,
        'bytes': len(payload),
        'samples': int(samples.size),
        'duration': samples.size / config.sample_rate,
        'audio': base64.b64encode(wav_bytes).decode('utf-8'),
        'audio_format': 'wav'
    })


@api_bp.route('/decode', methods=['POST'])
def decode_wav():
    """
    Demodulate a WAV with the current settings.

    Accepts:
        - File upload (multipart/form-data with 'file' field)
        - JSON with base64 audio

    Returns:
        JSON with decoded bytes as hex
    """
    decoder = AFSKDecoder(_session().config)

    try:
        if request.content_type and 'multipart/form-data' in request.content_type:
            if 'file' not in request.files:
                return _error('No audio file provided')
            audio_bytes = request.files['file'].read()
        else:
            data = request.get_json(silent=True) or {}
            audio_bytes = base64.b64decode(data['audio'])

        decoded = decoder.decode_file(audio_bytes)

    except KeyError:
        return _error('No audio provided')
    except (ValueError, binascii.Error) as e:
        return _error(str(e))

    return jsonify({
        'success': True,
        'hex': decoded.hex(),
        'bytes': len(decoded)
    })
