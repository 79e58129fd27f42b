"""
Clean-linen workflow.

Registered linen scanned at the clean-linen station is listed and
checked against the selected customer; unregistered tags are dropped.
"""

from typing import Any, Dict

from core.epc_cache import Outcome

from .base import BaseWorkflow, WorkflowError


class LinenCleanWorkflow(BaseWorkflow):
    """Collects clean linen for one customer and posts it to the API."""

    name = "Linen Clean"

    def process_scanned_epc(self, epc: str) -> bool:
        epc = (epc or "").strip()
        if not epc or not self._claim(epc):
            return False

        result = self.cache.resolve(epc)
        if result.outcome is Outcome.INVALID_FORMAT:
            self._warning(f"Invalid EPC format: {epc}")
            return False
        if not result.found:
            return False

        self._place_row(self._record_row(result))
        self._info(f"EPC {epc} added ({result.record.linen_name or '-'})")
        return True

    def enter_manual_epc(self, epc: str) -> bool:
        """
        Validate a typed EPC and add it to the table.

        An EPC the API does not know is released again so a later scan
        can retry it against the (negative) cache entry.
        """
        epc = (epc or "").strip()
        if not epc:
            return False
        if self.find_row(epc) != -1:
            self._warning(f"EPC {epc} is already in the table")
            return False
        if not self._claim(epc):
            return False

        result = self.cache.resolve(epc)
        if not result.found:
            self._release(epc)
            if result.outcome is Outcome.INVALID_FORMAT:
                self._warning(f"Invalid EPC format: {epc}")
            else:
                self._warning(f"EPC {epc} is not registered")
            return False

        self._place_row(self._record_row(result))
        return True

    def submit(self) -> Dict[str, Any]:
        """Post the clean-linen batch, then reset the workflow."""
        self._require_api()
        if not self.customer_id:
            raise WorkflowError("Select a customer first")

        with self._lock:
            rows = [row for row in self.rows if row.has_epc]
        out_of_scope = [row.epc for row in rows if row.is_valid_customer is False]
        if out_of_scope:
            raise WorkflowError(
                f"{len(out_of_scope)} tag(s) do not belong to the customer: "
                + ", ".join(out_of_scope)
            )

        valid = [row for row in rows if row.is_valid_customer is not False]
        if not valid:
            raise WorkflowError("At least one valid linen EPC is required")

        payload = {
            "customerId": self.customer_id,
            "linenQty": len(valid),
            "linens": self._linen_payload(valid),
        }
        result = self.api.submit_linen_clean(payload)
        self._info(f"Linen clean submitted: {len(valid)} linen")
        self.clear_all()
        return result
