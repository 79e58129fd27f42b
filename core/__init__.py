"""
Core module for the Linen RFID Dashboard.

This module contains the hardware and backend abstraction layer:
- RFID Reader interface and polling session
- Inventory API client
- EPC reconciliation cache
- Label printing
"""

from .rfid_reader import RFIDReader, RFIDReaderError
from .session import RFIDSession
from .inventory_api import InventoryAPI, InventoryAPIError
from .epc_cache import EPCCache, LookupResult, Outcome, is_valid_epc
from .printer import DeliveryLabel, PrinterError, build_delivery_zpl, format_delivery_text

__all__ = [
    'RFIDReader',
    'RFIDReaderError',
    'RFIDSession',
    'InventoryAPI',
    'InventoryAPIError',
    'EPCCache',
    'LookupResult',
    'Outcome',
    'is_valid_epc',
    'DeliveryLabel',
    'PrinterError',
    'build_delivery_zpl',
    'format_delivery_text',
]
