"""
Acoustic modem for programming retro computers over a speaker link.
"""

__version__ = '0.1.0'
