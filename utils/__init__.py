"""
Utility functions for the Linen RFID Dashboard.
"""

from .csv_exporter import CSVExporter
from .date_shift import DateShift, date_shift, shift_datetime
from .logging import Logger

__all__ = ['CSVExporter', 'DateShift', 'date_shift', 'shift_datetime', 'Logger']
