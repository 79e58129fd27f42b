"""
RFID registration workflow.

Registration binds fresh tags to a linen type and room, so every
well-formed EPC is accepted without asking the inventory API.
"""

from typing import Any, Dict, List, Optional

from core.epc_cache import is_valid_epc
from core.models import LinenRow

from .base import BaseWorkflow, WorkflowError


class RegisterWorkflow(BaseWorkflow):
    """Collects new tags and registers them to a customer."""

    name = "Register"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.rows = [LinenRow()]

    def process_scanned_epc(self, epc: str) -> bool:
        epc = (epc or "").strip()
        if not epc:
            return False

        with self._lock:
            if epc in self.processed_tags or self.find_row(epc) != -1:
                return False
            self.processed_tags.add(epc)
            valid = is_valid_epc(epc)
            if valid:
                self._place_row(LinenRow(epc=epc))

        if not valid:
            self._warning(f"Invalid EPC format: {epc}")
            return False
        self._info(f"EPC {epc} added")
        return True

    def remove_row(self, index: int) -> bool:
        """The table always keeps at least one row."""
        with self._lock:
            if len(self.rows) <= 1:
                return False
            return super().remove_row(index)

    def update_row(
        self,
        index: int,
        linen_id: Optional[str] = None,
        room_id: Optional[str] = None,
        epc: Optional[str] = None
    ) -> bool:
        with self._lock:
            if index < 0 or index >= len(self.rows):
                return False
            row = self.rows[index]
            if epc is not None:
                epc = epc.strip()
                if row.epc:
                    self.processed_tags.discard(row.epc)
                row.epc = epc
                if epc:
                    self.processed_tags.add(epc)
            if linen_id is not None:
                row.linen_id = linen_id
            if room_id is not None:
                row.room_id = room_id
        return True

    def clear_all(self):
        super().clear_all()
        with self._lock:
            self.rows = [LinenRow()]

    # ------------------------------------------------------------------
    # Computed values
    # ------------------------------------------------------------------

    def filled_count(self) -> int:
        """Rows with any field filled."""
        with self._lock:
            return sum(
                1 for row in self.rows
                if row.epc.strip() or row.linen_id.strip() or row.room_id.strip()
            )

    def complete_count(self, default_linen_id: str = "") -> int:
        return len(self._complete_rows(default_linen_id))

    def _complete_rows(self, default_linen_id: str = "") -> List[LinenRow]:
        with self._lock:
            return [
                row for row in self.rows
                if row.epc.strip()
                and (row.linen_id.strip() or default_linen_id.strip())
                and row.room_id.strip()
            ]

    def is_form_valid(self, customer_id: Optional[str], description: Optional[str],
                      linen_id: str = "") -> bool:
        if not (customer_id or "").strip():
            return False
        if not (description or "").strip():
            return False
        return self.complete_count(linen_id) > 0

    def submit(
        self,
        customer_id: str,
        linen_id: str,
        description: str,
        location_id: str = ""
    ) -> Dict[str, Any]:
        """Register the complete rows, then reset the workflow."""
        self._require_api()
        if not self.is_form_valid(customer_id, description, linen_id):
            raise WorkflowError(
                "Customer, description and at least one complete row are required"
            )

        rows = self._complete_rows(linen_id)
        payload = {
            "customerId": customer_id,
            "linenId": linen_id,
            "rfidRegisterDescription": description,
            "locationId": location_id,
            "linens": [
                {
                    "epc": row.epc,
                    "linenId": row.linen_id or linen_id,
                    "roomId": row.room_id,
                }
                for row in rows
            ],
        }
        result = self.api.register_rfid(payload)
        self._info(f"Registered {len(rows)} RFID tag(s)")
        self.clear_all()
        return result
