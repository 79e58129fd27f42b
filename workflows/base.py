"""
Base workflow for the Linen RFID Dashboard.

A workflow turns polled tag batches into table rows. Every workflow
shares the same EPC cache contract: one lookup per EPC per session,
rows revalidated against the customer/room scope without re-fetching.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Iterable, List, Optional, Set

import pandas as pd

from core.epc_cache import EPCCache, LookupResult, check_scope
from core.models import LinenRow, TagReading

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["room_name", "linen_name", "quantity"]


class WorkflowError(Exception):
    """Raised when a workflow cannot be submitted."""
    pass


class BaseWorkflow(ABC):
    """
    Abstract base class for scanning workflows.

    Subclasses implement process_scanned_epc(). Lookups run on
    ``executor`` when one is given so the polling thread never waits on
    the network; without one they run inline.
    """

    name = "workflow"

    def __init__(self, cache: EPCCache, api=None, log=None, executor=None):
        """
        Initialize workflow with required components.

        Args:
            cache: EPCCache for this workflow's session
            api: InventoryAPI used for submits
            log: UI Logger
            executor: Optional concurrent.futures executor for lookups
        """
        self.cache = cache
        self.api = api
        self.log = log
        self._executor = executor

        self.rows: List[LinenRow] = []
        self.processed_tags: Set[str] = set()
        self.customer_id: Optional[str] = None
        self.room_id: Optional[str] = None

        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Logging helpers
    # ------------------------------------------------------------------

    def _info(self, message: str):
        if self.log:
            self.log.info(message)
        else:
            logger.info(message)

    def _warning(self, message: str):
        if self.log:
            self.log.warning(message)
        else:
            logger.warning(message)

    # ------------------------------------------------------------------
    # Tag intake
    # ------------------------------------------------------------------

    @abstractmethod
    def process_scanned_epc(self, epc: str) -> bool:
        """
        Process one scanned EPC.

        Returns:
            True if the EPC produced or updated a row
        """
        pass

    def handle_tags(self, tags: Iterable[TagReading]):
        """Feed a polled tag batch into the workflow."""
        with self._lock:
            seen = set(self.processed_tags)
        for epc in dict.fromkeys(t.epc for t in tags if t.epc):
            if epc in seen:
                continue
            self._dispatch(self.process_scanned_epc, epc)

    def _dispatch(self, fn, *args):
        if self._executor is None:
            fn(*args)
            return
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._report_failure)

    @staticmethod
    def _report_failure(future):
        error = future.exception()
        if error is not None:
            logger.error("Workflow task failed: %s", error)

    def _claim(self, epc: str) -> bool:
        """Mark an EPC as processed; False when it already was."""
        with self._lock:
            if epc in self.processed_tags:
                return False
            self.processed_tags.add(epc)
            return True

    def _release(self, epc: str):
        with self._lock:
            self.processed_tags.discard(epc)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def get_rows(self) -> List[LinenRow]:
        """Snapshot of the table rows."""
        with self._lock:
            return [replace(row) for row in self.rows]

    def find_row(self, epc: str) -> int:
        with self._lock:
            for index, row in enumerate(self.rows):
                if row.epc == epc:
                    return index
        return -1

    def add_row(self) -> int:
        """Append an empty row for manual entry. Returns its index."""
        with self._lock:
            self.rows.append(LinenRow())
            return len(self.rows) - 1

    def remove_row(self, index: int) -> bool:
        """
        Remove a row and forget its EPC so it can be scanned again.

        The cache keeps the EPC, so scanning it again costs no lookup.
        """
        with self._lock:
            if index < 0 or index >= len(self.rows):
                return False
            row = self.rows.pop(index)
            if row.epc:
                self.processed_tags.discard(row.epc)
        return True

    def _place_row(self, row: LinenRow) -> LinenRow:
        """Fill the first empty row, or append when there is none."""
        with self._lock:
            for index, existing in enumerate(self.rows):
                if not existing.has_epc:
                    self.rows[index] = row
                    return row
            self.rows.append(row)
            return row

    def _record_row(self, result: LookupResult) -> LinenRow:
        row = LinenRow(epc=result.epc)
        row.apply_record(result.record)
        self._apply_scope(row, result.record)
        return row

    def clear_all(self):
        """Reset rows, processed tags and the EPC cache together."""
        with self._lock:
            self.rows = []
            self.processed_tags = set()
            self.cache.clear()
        self._info(f"{self.name}: all EPC data cleared")

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------

    def _apply_scope(self, row: LinenRow, record=None):
        if record is None and row.epc:
            record = self.cache.get_record(row.epc)
        if record is None:
            return
        check = check_scope(record, self.customer_id, self.room_id)
        row.is_valid_customer = check.is_valid
        row.error_message = check.error_message

    def set_scope(self, customer_id: Optional[str], room_id: Optional[str] = None):
        """Revalidate every row against a new customer/room from the cache only."""
        with self._lock:
            self.customer_id = customer_id or None
            self.room_id = room_id or None
            for row in self.rows:
                if row.has_epc and not row.is_non_exist and not row.is_duplicate:
                    self._apply_scope(row)

    # ------------------------------------------------------------------
    # Computed values
    # ------------------------------------------------------------------

    def valid_rows(self) -> List[LinenRow]:
        with self._lock:
            return [replace(row) for row in self.rows if row.is_valid]

    def invalid_rows(self) -> List[LinenRow]:
        with self._lock:
            return [replace(row) for row in self.rows if row.is_invalid]

    def valid_count(self) -> int:
        return len(self.valid_rows())

    def invalid_count(self) -> int:
        return len(self.invalid_rows())

    def summarize(self) -> pd.DataFrame:
        """Linen counts of the valid rows grouped by room and linen name."""
        rows = self.valid_rows()
        if not rows:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)
        df = pd.DataFrame([
            {
                "room_name": row.room_name or "General",
                "linen_name": row.linen_name or row.linen_type_name or "Unknown",
            }
            for row in rows
        ])
        return (
            df.groupby(["room_name", "linen_name"], sort=True)
            .size()
            .reset_index(name="quantity")
        )

    def _require_api(self):
        if self.api is None:
            raise WorkflowError("Inventory API is not configured")

    def _linen_payload(self, rows: List[LinenRow]) -> List[dict]:
        return [{"epc": row.epc, "status_id": row.status_id or 1} for row in rows]
