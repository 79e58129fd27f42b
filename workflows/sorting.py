"""
Sorting workflow.

Two sorting tables sit over two antennas: antenna 1 feeds the left
table, antenna 2 the right one. A tag follows the antenna that read it
last.
"""

from typing import Dict, Iterable, List

from core.epc_cache import Outcome
from core.models import LinenRow, TagReading

from .base import BaseWorkflow

LEFT_ANTENNA = 1
RIGHT_ANTENNA = 2


class SortingWorkflow(BaseWorkflow):

    name = "Sorting"

    def handle_tags(self, tags: Iterable[TagReading]):
        latest: Dict[str, TagReading] = {}
        for tag in tags:
            if not tag.epc:
                continue
            current = latest.get(tag.epc)
            if current is None or tag.timestamp >= current.timestamp:
                latest[tag.epc] = tag

        for epc, tag in latest.items():
            if self._move_row(epc, tag.antenna_id):
                continue
            with self._lock:
                if epc in self.processed_tags:
                    continue
            self._dispatch(self.process_scanned_epc, epc, tag.antenna_id)

    def _move_row(self, epc: str, antenna_id: int) -> bool:
        """Point an existing row at a new antenna. False when there is no row."""
        with self._lock:
            index = self.find_row(epc)
            if index == -1:
                return False
            row = self.rows[index]
            if row.antenna_id != antenna_id:
                self._info(f"EPC {epc} moved to antenna {antenna_id}")
                row.antenna_id = antenna_id
            return True

    def process_scanned_epc(self, epc: str, antenna_id: int = LEFT_ANTENNA) -> bool:
        epc = (epc or "").strip()
        if not epc or not self._claim(epc):
            return False

        result = self.cache.resolve(epc)
        if result.outcome in (Outcome.INVALID_FORMAT, Outcome.SKIPPED):
            if result.outcome is Outcome.INVALID_FORMAT:
                self._warning(f"Invalid EPC format: {epc}")
            return False

        if result.found:
            row = self._record_row(result)
        else:
            row = LinenRow(epc=epc, is_non_exist=True, error_message="EPC not registered")
        row.antenna_id = antenna_id
        self._place_row(row)
        return True

    def tables(self) -> Dict[int, List[LinenRow]]:
        """Rows grouped by antenna."""
        grouped: Dict[int, List[LinenRow]] = {}
        for row in self.get_rows():
            if row.has_epc:
                grouped.setdefault(row.antenna_id or LEFT_ANTENNA, []).append(row)
        return grouped

    def left_rows(self) -> List[LinenRow]:
        return self.tables().get(LEFT_ANTENNA, [])

    def right_rows(self) -> List[LinenRow]:
        return self.tables().get(RIGHT_ANTENNA, [])
