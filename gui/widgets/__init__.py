"""
GUI widgets for the Linen RFID Dashboard.
"""

from .reader_panel import ReaderPanel
from .customer_selector import CustomerSelector
from .log_viewer import LogViewer
from .status_bar import StatusBar

__all__ = ['ReaderPanel', 'CustomerSelector', 'LogViewer', 'StatusBar']
