"""
Modem control Flask application
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from ..modem import PlaybackSession
from ..settings import ModemSettings

logger = logging.getLogger(__name__)


def create_app(session: Optional[PlaybackSession] = None,
               settings: Optional[ModemSettings] = None):
    settings = settings or ModemSettings()
    app = Flask(__name__)
    CORS(app)

    if session is None:
        session = PlaybackSession()
    session.configure(settings.transmission_options())
    if settings.device and not session.open_device(settings.device):
        logger.warning(f"Configured device {settings.device!r} could not be opened")

    app.extensions['modem_session'] = session
    app.extensions['modem_settings'] = settings

    # register blueprints
    from .routes import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    return app
