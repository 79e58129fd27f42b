"""
Delivery workflow.

Every scanned tag gets a row straight away; the row is then filled from
the EPC cache. Unregistered tags stay in the table flagged so the
operator sees them, and a delivery can only be submitted when no row is
flagged.
"""

from typing import Any, Dict, List, Optional

from core.epc_cache import LookupResult, Outcome, is_valid_epc
from core.models import LinenRow
from core.printer import DeliveryLabel, LabelItem

from .base import BaseWorkflow, WorkflowError

NOT_REGISTERED = "EPC not registered"


class DeliveryWorkflow(BaseWorkflow):
    """Builds a delivery for one customer, posts it and labels it."""

    name = "Delivery"

    def process_scanned_epc(self, epc: str) -> bool:
        epc = (epc or "").strip()
        if not epc:
            return False

        with self._lock:
            if epc in self.processed_tags or self.find_row(epc) != -1:
                return False
            self.processed_tags.add(epc)
            if is_valid_epc(epc):
                row = self._place_row(LinenRow(epc=epc, loading=True))
            else:
                row = None

        if row is None:
            self._warning(f"Invalid EPC format: {epc}")
            return False

        self._resolve_into(row, epc)
        return True

    def enter_manual_epc(self, epc: str) -> bool:
        """
        Add a typed EPC. Malformed and duplicate EPCs are kept as
        flagged rows so the delivery cannot be submitted with them.
        """
        epc = (epc or "").strip()
        if not epc:
            return False

        if not is_valid_epc(epc):
            self._place_row(LinenRow(
                epc=epc, is_non_exist=True, error_message="Invalid EPC format"
            ))
            return False

        with self._lock:
            if self.find_row(epc) != -1:
                self.rows.append(LinenRow(
                    epc=epc, is_duplicate=True, error_message="Duplicate EPC"
                ))
                return False
            self.processed_tags.add(epc)
            row = self._place_row(LinenRow(epc=epc, loading=True))

        self._resolve_into(row, epc)
        return True

    def _resolve_into(self, row: LinenRow, epc: str):
        # A lookup still running from an earlier, removed row is awaited
        result = self.cache.resolve(epc, wait=True)
        with self._lock:
            self._apply_result(row, result)

    def _apply_result(self, row: LinenRow, result: LookupResult):
        if result.outcome is Outcome.SKIPPED:
            return
        if not result.found:
            row.is_non_exist = True
            row.loading = False
            row.error_message = NOT_REGISTERED
            return
        row.apply_record(result.record)
        row.is_non_exist = False
        self._apply_scope(row, result.record)

    def validate_all(self, customer_id: Optional[str], room_id: Optional[str] = None):
        """
        Re-check every row for a newly selected customer.

        Rows without a cached record are resolved first; the cache keeps
        that to one lookup per EPC.
        """
        with self._lock:
            pending = [
                row for row in self.rows
                if row.has_epc and not row.is_non_exist and not row.is_duplicate
                and self.cache.get_record(row.epc) is None
            ]
        for row in pending:
            result = self.cache.resolve(row.epc, wait=True)
            with self._lock:
                self._apply_result(row, result)
        self.set_scope(customer_id, room_id)

    def is_data_valid(self) -> bool:
        with self._lock:
            if any(row.loading for row in self.rows):
                return False
            has_valid = any(row.is_valid for row in self.rows)
            has_invalid = any(row.is_invalid for row in self.rows)
        return has_valid and not has_invalid

    def submit(self, driver_name: str = "", plate_number: str = "") -> Dict[str, Any]:
        """Post the delivery, then reset the workflow."""
        self._require_api()
        if not self.customer_id:
            raise WorkflowError("Select a customer first")

        with self._lock:
            pending = [row.epc for row in self.rows if row.loading]
        if pending:
            raise WorkflowError(f"{len(pending)} tag(s) are still being checked")

        invalid = self.invalid_rows()
        if invalid:
            raise WorkflowError(
                f"{len(invalid)} tag(s) cannot be delivered: "
                + ", ".join(row.epc for row in invalid)
            )

        valid = self.valid_rows()
        if not valid:
            raise WorkflowError("At least one valid linen EPC is required")

        payload = {
            "customerId": self.customer_id,
            "qty": len(valid),
            "driverName": driver_name,
            "plateNumber": plate_number,
            "linens": self._linen_payload(valid),
        }
        result = self.api.submit_delivery(payload)
        self._info(f"Delivery submitted: {len(valid)} linen")
        self.clear_all()
        return result

    def build_label(
        self,
        customer_name: str,
        driver_name: str = "-",
        delivery_type: str = "DELIVERY",
        driver_label: str = "Driver"
    ) -> DeliveryLabel:
        """Label content for the current valid rows."""
        summary = self.summarize()
        items: List[LabelItem] = [
            LabelItem(name=rec.linen_name, quantity=int(rec.quantity), room=rec.room_name)
            for rec in summary.itertuples(index=False)
        ]
        rooms = sorted(set(summary["room_name"])) if not summary.empty else []
        if len(rooms) == 1:
            room = rooms[0]
        elif rooms:
            room = "Various rooms"
        else:
            room = "-"

        return DeliveryLabel(
            customer=customer_name or "-",
            room=room,
            total_linen=int(summary["quantity"].sum()) if not summary.empty else 0,
            delivery_type=delivery_type,
            driver_label=driver_label,
            driver_name=driver_name or "-",
            items=items,
        )
