"""
GUI module for the Linen RFID Dashboard.
"""

from .app import DashboardApp
from .styles import setup_styles

__all__ = ['DashboardApp', 'setup_styles']
