"""
CSV Export Utilities for the Linen RFID Dashboard.
"""

import csv
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from pathlib import Path

from core.models import LinenRow, TagReading

logger = logging.getLogger(__name__)


class CSVExporter:
    """
    Exports workflow tables and tag snapshots to CSV files.
    """

    ROW_HEADERS = [
        "epc", "linen_id", "linen_name", "linen_type_name",
        "customer_id", "customer_name", "room_id", "room_name",
        "building_name", "status_id", "status", "antenna_id",
        "valid", "error"
    ]

    TAG_HEADERS = [
        "timestamp", "first_seen", "epc", "antenna", "antenna_name",
        "count", "rssi"
    ]

    def __init__(self, output_dir: str = "."):
        """
        Initialize exporter.

        Args:
            output_dir: Directory for output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _target(self, prefix: str, filename: Optional[str]) -> Path:
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{prefix}_{timestamp}.csv"
        return self.output_dir / filename

    def export_rows(
        self,
        workflow_name: str,
        rows: Iterable[LinenRow],
        filename: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Export a workflow table to CSV.

        Args:
            workflow_name: Name written to the metadata block and filename
            rows: Table rows; rows without an EPC are skipped
            filename: Output filename (auto-generated if None)
            metadata: Additional metadata to include

        Returns:
            Path to exported file
        """
        filepath = self._target(workflow_name.lower().replace(" ", "_"), filename)
        rows = [row for row in rows if row.has_epc]

        run_metadata = {
            "export_time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "workflow": workflow_name,
            "rows": len(rows),
            **(metadata or {})
        }

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)

            writer.writerow(["# RUN_METADATA"])
            for key, value in run_metadata.items():
                writer.writerow([f"# {key}", value])
            writer.writerow([])

            writer.writerow(self.ROW_HEADERS)
            for row in rows:
                writer.writerow(self._row_to_csv(row))

        logger.info("Exported %d rows to %s", len(rows), filepath)
        return str(filepath)

    def _row_to_csv(self, row: LinenRow) -> List:
        return [
            row.epc,
            row.linen_id,
            row.linen_name,
            row.linen_type_name,
            row.customer_id,
            row.customer_name,
            row.room_id,
            row.room_name,
            row.building_name,
            row.status_id,
            row.status,
            row.antenna_id if row.antenna_id is not None else "",
            0 if row.is_invalid else 1,
            row.error_message or ""
        ]

    def export_live_snapshot(
        self,
        tags: Iterable[TagReading],
        filename: Optional[str] = None
    ) -> str:
        """
        Export the reader's current tag list to CSV.

        Returns:
            Path to exported file
        """
        filepath = self._target("live_snapshot", filename)
        tags = list(tags)

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(self.TAG_HEADERS)

            for tag in tags:
                writer.writerow([
                    tag.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    tag.first_seen.strftime("%Y-%m-%d %H:%M:%S"),
                    tag.epc,
                    tag.antenna_id,
                    tag.antenna_name,
                    tag.read_count,
                    f"{tag.rssi:.1f}"
                ])

        logger.info("Exported snapshot of %d tags to %s", len(tags), filepath)
        return str(filepath)
