#!/usr/bin/env python3
"""
Run the modem control server.
"""

import logging
import sys
import os

# add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from retromodem.settings import ModemSettings
from retromodem.web import create_app

if __name__ == '__main__':
    settings = ModemSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app = create_app(settings=settings)
    try:
        # one request at a time: requests are the session's control context
        app.run(debug=settings.debug, host=settings.host, port=settings.port,
                threaded=False, use_reloader=False)
    finally:
        app.extensions['modem_session'].close()
