"""
Grouping workflow.

Shows what the last scanned tag is and keeps the registered tags of the
scan in a table. Unregistered tags only show up as "Not registered" in
the current-linen panel.
"""

from dataclasses import dataclass
from typing import Iterable, List

from core.epc_cache import Outcome
from core.models import TagReading

from .base import BaseWorkflow

NOT_REGISTERED = "Not registered"


@dataclass
class LinenInfo:
    """What the grouping panel shows for the last scanned tag."""
    epc: str = ""
    customer_name: str = ""
    linen_name: str = ""
    room_name: str = ""

    @classmethod
    def not_registered(cls) -> "LinenInfo":
        return cls(
            epc="",
            customer_name=NOT_REGISTERED,
            linen_name=NOT_REGISTERED,
            room_name=NOT_REGISTERED,
        )


class GroupingWorkflow(BaseWorkflow):
    """Identifies scanned linen for grouping by room."""

    name = "Grouping"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.current_linen_info = LinenInfo()

    def process_scanned_epc(self, epc: str) -> bool:
        epc = (epc or "").strip()
        if not epc or not self._claim(epc):
            return False

        result = self.cache.resolve(epc)
        if result.outcome is Outcome.SKIPPED:
            return False
        if result.outcome is Outcome.INVALID_FORMAT:
            self._warning(f"Invalid EPC format: {epc}")
            return False

        if not result.found:
            with self._lock:
                self.current_linen_info = LinenInfo.not_registered()
            return False

        record = result.record
        with self._lock:
            self.current_linen_info = LinenInfo(
                epc=record.epc or epc,
                customer_name=record.customer_name or "-",
                linen_name=record.linen_name or "-",
                room_name=record.room_name or "-",
            )
        self._place_row(self._record_row(result))
        return True

    def filter_tags(self, tags: Iterable[TagReading]) -> List[TagReading]:
        """Keep only the tags the inventory API knows about."""
        tags = list(tags or [])
        if not tags:
            return []
        valid = self.cache.valid_epcs
        if not valid:
            return []
        return [tag for tag in tags if tag.epc in valid]

    def clear_all(self):
        with self._lock:
            self.current_linen_info = LinenInfo()
        super().clear_all()
