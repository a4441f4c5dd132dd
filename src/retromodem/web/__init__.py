# Flask control surface for the modem
from .app import create_app

__all__ = ['create_app']
