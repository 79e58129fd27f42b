"""
Label printing for the Linen RFID Dashboard.

Builds ZPL delivery labels and sends them to a Zebra printer over raw
TCP, or prints plain text through PowerShell ``Out-Printer`` on Windows.
"""

import logging
import socket
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

logger = logging.getLogger(__name__)

LINE_START_Y = 325
LINE_HEIGHT = 25
MIN_LABEL_HEIGHT = 600


class PrinterError(Exception):
    """Raised when a label cannot be printed."""
    pass


@dataclass
class LabelItem:
    name: str
    quantity: int
    room: str = ""


@dataclass
class DeliveryLabel:
    """Content of one delivery label."""
    customer: str = "-"
    room: str = "-"
    total_linen: int = 0
    delivery_type: str = "DELIVERY"
    driver_label: str = "Operator"
    driver_name: str = "-"
    items: List[LabelItem] = field(default_factory=list)
    linen_types: Optional[str] = None


def _zpl_text(value) -> str:
    # ^ and ~ start ZPL commands
    return str(value).replace("^", " ").replace("~", " ")


def build_delivery_zpl(
    label: DeliveryLabel,
    company_name: str = "PT JALIN MITRA NUSANTARA",
    company_subtitle: str = "(Obsesiman)",
    now: Optional[datetime] = None
) -> str:
    """
    Render a delivery label as ZPL.

    Linen items are listed one per line from y=325 at 25-dot spacing;
    the label grows past 600 dots when the item list needs it.
    """
    now = now or datetime.now()
    printed_at = now.strftime("%d/%m/%Y %H:%M")

    start_y = LINE_START_Y
    item_lines = []
    if label.items:
        for index, item in enumerate(label.items):
            y = start_y + index * LINE_HEIGHT
            item_lines.append(
                f"^FO70,{y}^A0N,22,22^FD* {_zpl_text(item.name)}: {item.quantity or '-'}^FS"
            )
    elif label.linen_types:
        item_lines.append(f"^FO70,{start_y}^A0N,22,22^FDLinen: {_zpl_text(label.linen_types)}^FS")
        start_y += LINE_HEIGHT

    item_count = len(label.items) if label.items else 1
    final_y = start_y + item_count * LINE_HEIGHT + 35
    label_height = max(MIN_LABEL_HEIGHT, final_y + 50)

    lines = [
        "^XA",
        f"^LL{label_height}",
        f"^FO100,50^A0N,35,35^FD{_zpl_text(company_name)}^FS",
        f"^FO220,90^A0N,28,28^FD{_zpl_text(company_subtitle)}^FS",
        "",
        f"^FO150,125^A0N,35,35^FD{_zpl_text(label.delivery_type or 'DELIVERY')}^FS",
        "",
        f"^FO230,165^A0N,20,20^FD{printed_at}^FS",
        "",
        "^FO70,190^A0N,25,25^FDDelivery Details:^FS",
        "^FO70,225^GB480,0,2^FS",
        "",
        f"^FO70,250^A0N,22,22^FDCustomer: {_zpl_text(label.customer or '-')}^FS",
        "",
        f"^FO70,275^A0N,22,22^FDRoom: {_zpl_text(label.room or '-')}^FS",
        "",
        f"^FO70,300^A0N,22,22^FDTotal Linen: {label.total_linen or 0}^FS",
        "",
        f"^FO450,250^A0N,22,22^FD{_zpl_text(label.driver_label or 'Operator')}^FS",
        f"^FO450,275^A0N,22,22^FD{_zpl_text(label.driver_name or '-')}^FS",
        "",
        *item_lines,
        "",
        f"^FO70,{final_y}^GB480,0,2^FS",
        f"^FO270,{final_y + 30}^A0N,20,20^FDThank you^FS",
        "^XZ",
    ]
    return "\n".join(lines)


def format_delivery_text(
    label: DeliveryLabel,
    company_name: str = "PT JALIN MITRA NUSANTARA",
    company_subtitle: str = "(Obsesiman)",
    now: Optional[datetime] = None
) -> str:
    """Plain-text rendering of a delivery label for document printers."""
    now = now or datetime.now()
    rule = "-" * 40

    lines = [
        company_name,
        company_subtitle,
        "",
        label.delivery_type or "DELIVERY",
        now.strftime("%d/%m/%Y %H:%M"),
        rule,
        f"Customer: {label.customer or '-'}",
        f"Room: {label.room or '-'}",
        f"Total Linen: {label.total_linen or 0}",
        f"{label.driver_label or 'Operator'}: {label.driver_name or '-'}",
        "",
    ]
    if label.items:
        lines.extend(f"* {item.name}: {item.quantity or '-'}" for item in label.items)
    elif label.linen_types:
        lines.append(f"Linen: {label.linen_types}")
    lines.extend([rule, "Thank you"])
    return "\n".join(lines)


class ZebraPrinter:
    """Sends raw ZPL to a network Zebra printer (port 9100)."""

    def __init__(self, host: str, port: int = 9100, timeout_s: float = 5.0):
        self.host = host
        self.port = port
        self.timeout_s = timeout_s

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    def render_delivery(self, label: DeliveryLabel, **kwargs) -> str:
        return build_delivery_zpl(label, **kwargs)

    def send(self, zpl: str):
        if not self.host:
            raise PrinterError("No printer selected!")
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout_s) as sock:
                sock.sendall(zpl.encode("utf-8"))
        except OSError as e:
            raise PrinterError(f"Print error: {e}") from e
        logger.info("Label sent to %s", self.name)


class WindowsPrinter:
    """Prints plain text through PowerShell's Out-Printer."""

    def __init__(self, printer_name: Optional[str] = None, timeout_s: float = 30.0):
        self.printer_name = printer_name
        self.timeout_s = timeout_s

    @property
    def name(self) -> str:
        return self.printer_name or "default printer"

    def render_delivery(self, label: DeliveryLabel, **kwargs) -> str:
        return format_delivery_text(label, **kwargs)

    def _command(self) -> List[str]:
        script = "$input | Out-Printer"
        if self.printer_name:
            escaped = self.printer_name.replace("'", "''")
            script = f"$input | Out-Printer -Name '{escaped}'"
        return ["powershell", "-NoProfile", "-Command", script]

    def send(self, text: str):
        try:
            completed = subprocess.run(
                self._command(),
                input=text,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise PrinterError(f"Print error: {e}") from e

        if completed.returncode != 0:
            raise PrinterError(f"Print error: {completed.stderr.strip()}")
        logger.info("Document sent to %s", self.name)


def printer_from_settings(printer_settings):
    """Network Zebra printer when a host is set, Windows printing otherwise."""
    if printer_settings.host:
        return ZebraPrinter(printer_settings.host, printer_settings.port)
    return WindowsPrinter(printer_settings.windows_printer_name)
