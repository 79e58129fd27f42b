"""Shared test data."""

import threading

from core.models import LinenRecord


EPC_A = "E2000017221101441890AAAA"
EPC_B = "E2000017221101441890BBBB"
EPC_C = "E2000017221101441890CCCC"
EPC_UNKNOWN = "E2000017221101441890FFFF"


def make_record(epc, customer_id="C1", room_id="R1", linen_name="Bed Sheet", **kwargs):
    return LinenRecord(
        epc=epc,
        linen_id=kwargs.pop("linen_id", "L1"),
        linen_name=linen_name,
        customer_id=customer_id,
        customer_name=kwargs.pop("customer_name", f"Hospital {customer_id}"),
        room_id=room_id,
        room_name=kwargs.pop("room_name", f"Room {room_id}"),
        **kwargs
    )


class FakeLookup:
    """Lookup callable backed by a dict; counts calls per EPC."""

    def __init__(self, records=None, error=None):
        self.records = records or {}
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, epc):
        with self._lock:
            self.calls.append(epc)
        if self.error is not None:
            raise self.error
        record = self.records.get(epc)
        return [record] if record else []


