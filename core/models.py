"""
Data model for the Linen RFID Dashboard.

Tag readings come from the reader; linen records, customers and rooms
come from the remote inventory API; linen rows are what the workflow
tables display.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Optional


def antenna_name(antenna_id: int) -> str:
    return f"Antenna {antenna_id}"


@dataclass
class TagReading:
    """A single tag as seen by one antenna."""
    epc: str
    antenna_id: int = 1
    rssi: float = -99.0
    read_count: int = 1
    first_seen: datetime = field(default_factory=datetime.now)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def antenna_name(self) -> str:
        return antenna_name(self.antenna_id)

    @property
    def key(self) -> str:
        return f"{self.epc}_{self.antenna_id}"


@dataclass(frozen=True)
class LinenRecord:
    """Linen data returned by the inventory API for one EPC."""
    epc: str
    linen_id: str = ""
    linen_name: str = ""
    linen_type_name: str = ""
    customer_id: str = ""
    customer_name: str = ""
    room_id: str = ""
    room_name: str = ""
    building_name: str = ""
    status_id: int = 1
    status: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LinenRecord":
        """Build a record from the API's camelCase JSON."""
        return cls(
            epc=data.get("epc") or "",
            linen_id=data.get("linenId") or "",
            linen_name=data.get("linenName") or "",
            linen_type_name=data.get("linenTypeName") or "",
            customer_id=data.get("customerId") or "",
            customer_name=data.get("customerName") or "",
            room_id=data.get("roomId") or "",
            room_name=data.get("roomName") or "",
            building_name=data.get("buildingName") or "",
            status_id=int(data.get("statusId") or 1),
            status=data.get("status") or "",
        )


@dataclass(frozen=True)
class Customer:
    customer_id: str
    customer_name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Customer":
        return cls(
            customer_id=data.get("customerId") or "",
            customer_name=data.get("customerName") or "",
        )


@dataclass(frozen=True)
class Room:
    room_id: str
    room_name: str = ""
    customer_id: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Room":
        return cls(
            room_id=data.get("roomId") or "",
            room_name=data.get("roomName") or "",
            customer_id=data.get("customerId") or "",
        )


@dataclass(frozen=True)
class UnregisteredLinen:
    linen_id: str
    linen_name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "UnregisteredLinen":
        return cls(
            linen_id=data.get("linenId") or "",
            linen_name=data.get("linenName") or "",
        )


@dataclass
class LinenRow:
    """
    One row of a workflow table.

    ``is_valid_customer`` is None until the row has been checked against
    a customer scope.
    """
    epc: str = ""
    linen_id: str = ""
    linen_name: str = ""
    linen_type_name: str = ""
    customer_id: str = ""
    customer_name: str = ""
    room_id: str = ""
    room_name: str = ""
    building_name: str = ""
    status_id: int = 1
    status: str = ""
    antenna_id: Optional[int] = None

    is_valid_customer: Optional[bool] = None
    is_non_exist: bool = False
    is_duplicate: bool = False
    loading: bool = False
    error_message: Optional[str] = None

    def apply_record(self, record: LinenRecord):
        """Copy linen record fields onto this row. The scanned EPC is kept."""
        self.linen_id = record.linen_id
        self.linen_name = record.linen_name
        self.linen_type_name = record.linen_type_name
        self.customer_id = record.customer_id
        self.customer_name = record.customer_name
        self.room_id = record.room_id
        self.room_name = record.room_name
        self.building_name = record.building_name
        self.status_id = record.status_id or 1
        self.status = record.status
        self.loading = False

    @property
    def has_epc(self) -> bool:
        return bool(self.epc and self.epc.strip())

    @property
    def is_valid(self) -> bool:
        return (
            self.has_epc
            and not self.loading
            and not self.is_non_exist
            and not self.is_duplicate
            and self.is_valid_customer is not False
        )

    @property
    def is_invalid(self) -> bool:
        return self.has_epc and (
            self.is_non_exist
            or self.is_duplicate
            or self.is_valid_customer is False
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
