"""
RFID Reader Interface for the Linen RFID Dashboard.

This module provides the RFIDReader class which wraps the SLLURP library
for communication with fixed-IP RFID readers using the LLRP protocol.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Dict, List, Optional, Callable, Any

from sllurp.llrp import (
    LLRPReaderConfig,
    LLRPReaderClient,
    LLRPReaderState
)
from twisted.internet import reactor, threads

from .models import TagReading

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5084
VALID_ANTENNAS = (1, 2, 3, 4)
MAX_POWER = 300  # 30.0 dBm, in tenths of dBm
MIN_POWER_DBM = 10.0
POWER_STEP_DBM = 0.1


class RFIDReaderError(Exception):
    """Base exception for RFID reader errors."""
    pass


class ReaderConnectionError(RFIDReaderError):
    """Raised when connection to reader fails."""
    pass


class NotConnectedError(RFIDReaderError):
    """Raised when an operation needs a connected reader."""

    def __init__(self, message: str = "Not connected to RFID reader"):
        super().__init__(message)


def power_index(power: int) -> int:
    """Convert tenths of dBm to the reader's 1-based power table index."""
    dbm = power / 10.0
    return max(1, int(round((dbm - MIN_POWER_DBM) / POWER_STEP_DBM)) + 1)


class RFIDReader:
    """
    RFID Reader interface using SLLURP/LLRP protocol.

    This class provides a high-level interface for:
    - Connecting/disconnecting from a fixed-IP reader
    - Starting/stopping inventory
    - Collecting tag reports keyed by EPC and antenna
    - Per-antenna transmit power
    - Thread-safe tag data access
    """

    def __init__(self, reconnect_delay_s: float = 3.0):
        self.connected: bool = False
        self.inventory_running: bool = False
        self.ip_address: Optional[str] = None
        self.port: int = DEFAULT_PORT

        self._tags: Dict[str, TagReading] = {}
        self._power: Dict[int, int] = {}
        self._antennas: List[int] = [1]

        self._reader_client: Optional[Any] = None
        self._reactor_thread: Optional[threading.Thread] = None
        self._last_disconnect_time: float = 0
        self._reconnect_delay_s = reconnect_delay_s
        self._lock = threading.Lock()

        self._on_state_change_callback: Optional[Callable[[bool], None]] = None

    def set_on_state_change_callback(self, callback: Callable[[bool], None]):
        """Set callback for connection state changes. Called with (is_connected)."""
        self._on_state_change_callback = callback

    def connect(
        self,
        ip_address: str,
        port: int = DEFAULT_PORT,
        antennas: Optional[List[int]] = None,
        power_settings: Optional[Dict[int, int]] = None
    ) -> str:
        """
        Connect to RFID reader.

        Args:
            ip_address: Reader IP address
            port: LLRP port
            antennas: Antenna ports to enable (e.g. [1], [1, 2])
            power_settings: Transmit power per antenna in tenths of dBm

        Returns:
            Connection summary

        Raises:
            ReaderConnectionError: if the LLRP client cannot be started
        """
        if not ip_address:
            raise ReaderConnectionError("Reader IP address is not configured")

        self._antennas = list(antennas or [1])
        for ant, power in (power_settings or {}).items():
            self._validate_power(int(ant), int(power))
            self._power[int(ant)] = int(power)

        # Throttle reconnection attempts
        time_since_disconnect = time.time() - self._last_disconnect_time
        if time_since_disconnect < self._reconnect_delay_s:
            time.sleep(self._reconnect_delay_s - time_since_disconnect)

        if self.connected:
            self.disconnect()

        try:
            factory_args = {
                "antennas": self._antennas,
                "tx_power": self._tx_power_indices(),
                "report_every_n_tags": 1,
                "start_inventory": False,
                "tag_content_selector": {
                    "EnableAntennaID": True,
                    "EnablePeakRSSI": True,
                    "EnableFirstSeenTimestamp": True,
                    "EnableLastSeenTimestamp": True,
                    "EnableTagSeenCount": True,
                },
            }

            config = LLRPReaderConfig(factory_args)
            self._reader_client = LLRPReaderClient(ip_address, port, config)
            self._reader_client.add_tag_report_callback(self._handle_tag_report)
            self._reader_client.add_state_callback(
                LLRPReaderState.STATE_CONNECTED,
                self._handle_state_change
            )
            self._reader_client.add_state_callback(
                LLRPReaderState.STATE_DISCONNECTED,
                self._handle_state_change
            )

            # Start reactor thread if not running
            if self._reactor_thread is None:
                self._reactor_thread = threading.Thread(
                    target=self._run_reactor,
                    daemon=True
                )
                self._reactor_thread.start()

            self._in_reactor(self._reader_client.connect)
        except Exception as e:
            self._reader_client = None
            raise ReaderConnectionError(f"Connection error: {e}") from e

        self.ip_address = ip_address
        self.port = port
        self.connected = True
        logger.info("Connecting to reader at %s:%s, antennas %s", ip_address, port, self._antennas)
        return f"Connected to {ip_address}:{port}"

    def disconnect(self) -> str:
        """Disconnect from reader."""
        if not self.connected:
            return "Not connected"

        self.inventory_running = False
        if self._reader_client:
            try:
                self._in_reactor(self._reader_client.disconnect)
            except Exception as e:
                logger.warning("Disconnect error: %s", e)

        self.connected = False
        self._reader_client = None
        self._last_disconnect_time = time.time()
        return "Disconnected"

    def start_inventory(self) -> Dict[str, Any]:
        """Clear previous tags and start inventory collection."""
        self._require_connected()
        self.clear_tags()
        try:
            self._in_reactor(self._reader_client.llrp.startInventory)
        except Exception as e:
            raise RFIDReaderError(f"Error starting inventory: {e}") from e
        self.inventory_running = True
        return {"success": True, "message": "Inventory started"}

    def stop_inventory(self) -> Dict[str, Any]:
        """Stop inventory collection."""
        if not self.inventory_running:
            return {"success": True, "message": "Inventory not running"}

        self.inventory_running = False
        if self._reader_client:
            try:
                self._in_reactor(self._reader_client.llrp.stopPolitely)
            except Exception as e:
                raise RFIDReaderError(f"Error stopping inventory: {e}") from e

        with self._lock:
            total_reads = sum(t.read_count for t in self._tags.values())
            total_tags = len(self._tags)
        return {
            "success": True,
            "message": "Inventory stopped",
            "total_tags_collected": total_tags,
            "total_reads": total_reads,
        }

    def get_tags(self) -> List[TagReading]:
        """Get a copy of all collected tag records (thread-safe)."""
        with self._lock:
            return list(self._tags.values())

    def get_tags_by_antenna(self, antenna_id: int) -> List[TagReading]:
        """Get all tags seen by specific antenna."""
        with self._lock:
            return [t for t in self._tags.values() if t.antenna_id == antenna_id]

    def clear_tags(self) -> int:
        """Clear all collected tag data. Returns the number of records dropped."""
        with self._lock:
            count = len(self._tags)
            self._tags = {}
        return count

    def set_power(self, antenna_id: int, power: int) -> Dict[str, Any]:
        """
        Set transmit power for one antenna.

        Args:
            antenna_id: Antenna port (1-4)
            power: Power in tenths of dBm (0-300)
        """
        self._require_connected()
        self._validate_power(antenna_id, power)
        self._power[antenna_id] = power

        try:
            self._in_reactor(
                self._reader_client.update_config, {"tx_power": self._tx_power_indices()}
            )
        except Exception as e:
            raise RFIDReaderError(f"Error setting power: {e}") from e

        return {
            "antenna_id": antenna_id,
            "power": power,
            "power_dbm": power / 10.0,
            "message": f"Power set to {power / 10.0:.1f} dBm on antenna {antenna_id}",
        }

    def get_power(self, antenna_id: int) -> Dict[str, Any]:
        self._require_connected()
        if antenna_id not in VALID_ANTENNAS:
            raise ValueError("Invalid antenna ID. Must be between 1 and 4")
        power = self._power.get(antenna_id, 0)
        return {"antenna_id": antenna_id, "power": power, "power_dbm": power / 10.0}

    def status(self) -> Dict[str, bool]:
        return {
            "connected": self.connected,
            "inventory_running": self.inventory_running,
        }

    @staticmethod
    def _validate_power(antenna_id: int, power: int):
        if antenna_id not in VALID_ANTENNAS:
            raise ValueError("Invalid antenna ID. Must be between 1 and 4")
        if power < 0 or power > MAX_POWER:
            raise ValueError("Power level out of range. Maximum is 300 (30.0 dBm)")

    def _require_connected(self):
        if not self.connected or self._reader_client is None:
            raise NotConnectedError()

    def _tx_power_indices(self) -> Dict[int, int]:
        return {
            ant: power_index(self._power[ant])
            for ant in self._antennas
            if ant in self._power
        }

    def _in_reactor(self, func, *args):
        """Run an LLRP call on the reactor thread and wait for its result."""
        if not reactor.running:
            return func(*args)
        return threads.blockingCallFromThread(reactor, func, *args)

    def _run_reactor(self):
        """Run Twisted reactor in background thread."""
        try:
            if not reactor.running:
                reactor.run(installSignalHandlers=False)
        except Exception as e:
            logger.error("Reactor error: %s", e)

    def _handle_state_change(self, reader, state):
        """Handle reader state changes."""
        if state == LLRPReaderState.STATE_CONNECTED:
            self.connected = True
            logger.info("Reader connected successfully")
        elif state == LLRPReaderState.STATE_DISCONNECTED:
            self.connected = False
            self.inventory_running = False
            logger.info("Reader disconnected")

        if self._on_state_change_callback:
            self._on_state_change_callback(self.connected)

    def _handle_tag_report(self, reader, tag_reports):
        """Handle incoming tag reports."""
        if not self.inventory_running:
            return

        now = datetime.now()
        for tag in tag_reports:
            try:
                reading = self._parse_tag_report(tag, now)
            except (TypeError, ValueError) as e:
                logger.warning("Tag parse error: %s", e)
                continue
            if reading is None:
                continue

            with self._lock:
                existing = self._tags.get(reading.key)
                if existing is None:
                    self._tags[reading.key] = reading
                else:
                    existing.timestamp = now
                    existing.read_count += reading.read_count
                    existing.rssi = max(existing.rssi, reading.rssi)

    def _parse_tag_report(self, tag: Dict, now: datetime) -> Optional[TagReading]:
        """Parse raw tag report into a TagReading."""
        epc_raw = tag.get("EPC-96") or tag.get("EPCUnknown") or tag.get("EPC")
        if not epc_raw:
            return None

        if isinstance(epc_raw, bytes):
            try:
                epc = epc_raw.decode("ascii").upper()
            except UnicodeDecodeError:
                epc = epc_raw.hex().upper()
        else:
            epc = str(epc_raw).upper()

        rssi = float(tag.get("PeakRSSI", -99))
        if rssi < -150:  # high-resolution RSSI (x100)
            rssi = rssi / 100.0

        return TagReading(
            epc=epc,
            antenna_id=int(tag.get("AntennaID", 1)),
            rssi=rssi,
            read_count=int(tag.get("TagSeenCount", 1) or 1),
            first_seen=now,
            timestamp=now,
        )
