"""
Configuration module for the Linen RFID Dashboard.
"""

from .settings import Settings, ReaderSettings, ApiSettings, PrinterSettings

__all__ = ['Settings', 'ReaderSettings', 'ApiSettings', 'PrinterSettings']
