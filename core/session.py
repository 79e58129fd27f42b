"""
RFID session for the Linen RFID Dashboard.

The session owns the reader connection state and, while a workflow is
scanning, polls the reader every ``poll_interval_s`` and hands each tag
batch to that workflow's listener. Reader errors are written to the UI
log instead of propagating, so a GUI button never crashes the app.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from .models import TagReading
from .rfid_reader import RFIDReader, RFIDReaderError

logger = logging.getLogger(__name__)

TagListener = Callable[[List[TagReading]], None]


class RFIDSession:
    """Connection state plus the tag polling loop."""

    def __init__(self, reader: RFIDReader, poll_interval_s: float = 0.5, log=None):
        self.reader = reader
        self.poll_interval_s = poll_interval_s
        self.log = log

        self._listener: Optional[TagListener] = None
        self._poll_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def connected(self) -> bool:
        return self.reader.connected

    @property
    def scanning(self) -> bool:
        return self._poll_thread is not None and self._poll_thread.is_alive()

    def _info(self, message: str):
        if self.log:
            self.log.info(message)
        else:
            logger.info(message)

    def _error(self, message: str):
        if self.log:
            self.log.error(message)
        else:
            logger.error(message)

    def connect(
        self,
        ip_address: str,
        port: int,
        antennas: Optional[List[int]] = None,
        power_settings: Optional[Dict[int, int]] = None
    ) -> bool:
        try:
            result = self.reader.connect(
                ip_address, port, antennas=antennas, power_settings=power_settings
            )
        except (RFIDReaderError, ValueError) as e:
            self._error(f"Connect Error: {e}")
            return False
        self._info(f"Connected: {result}")
        return True

    def disconnect(self) -> bool:
        self.stop_scanning()
        try:
            result = self.reader.disconnect()
        except RFIDReaderError as e:
            self._error(f"Disconnect Error: {e}")
            return False
        self._info(f"Disconnected: {result}")
        return True

    def set_power(self, antenna_id: int, power: int) -> bool:
        try:
            result = self.reader.set_power(antenna_id, power)
        except (RFIDReaderError, ValueError) as e:
            self._error(f"SetPower Error: {e}")
            return False
        self._info(f"Set Power: {result['message']}")
        return True

    def get_power(self, antenna_id: int) -> Optional[Dict]:
        try:
            return self.reader.get_power(antenna_id)
        except (RFIDReaderError, ValueError) as e:
            self._error(f"GetPower Error: {e}")
            return None

    def clear_tags(self):
        count = self.reader.clear_tags()
        self._info(f"Clear Tags: {count} records dropped")

    def status(self) -> Dict[str, bool]:
        status = self.reader.status()
        status["scanning"] = self.scanning
        return status

    def start_scanning(self, listener: TagListener) -> bool:
        """
        Start inventory and poll tags into ``listener``.

        A scan already running for another listener is stopped first.
        """
        if self.scanning:
            self.stop_scanning()

        try:
            self.reader.start_inventory()
        except RFIDReaderError as e:
            self._error(f"Start Error: {e}")
            return False

        self._listener = listener
        self._stop_event.clear()
        self._poll_thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._poll_thread.start()
        self._info("Start Inventory")
        return True

    def stop_scanning(self) -> bool:
        thread = self._poll_thread
        if thread is None:
            return True

        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=self.poll_interval_s * 4)
        self._poll_thread = None
        self._listener = None

        try:
            result = self.reader.stop_inventory()
        except RFIDReaderError as e:
            self._error(f"Stop Error: {e}")
            return False
        self._info(f"Stop Inventory: {result['message']}")
        return True

    def poll_once(self):
        """Fetch the current tag batch and deliver it to the listener."""
        listener = self._listener
        if listener is None:
            return
        tags = self.reader.get_tags()
        if tags:
            listener(tags)

    def _poll_loop(self):
        while not self._stop_event.wait(self.poll_interval_s):
            try:
                self.poll_once()
            except Exception as e:
                logger.exception("Error fetching tags: %s", e)
