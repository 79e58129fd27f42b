"""
Workflow Tabs.

A workflow tab binds one workflow to a table: scan control, manual EPC
entry, customer scope and the submit action of that workflow.
"""

import logging
import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
from typing import List, Optional

from core.inventory_api import InventoryAPIError
from core.models import LinenRow
from core.printer import PrinterError
from gui.styles import ThemeManager, row_tag
from gui.widgets.customer_selector import CustomerSelector
from utils.date_shift import SHIFT_HOURS, date_shift
from workflows.base import WorkflowError

logger = logging.getLogger(__name__)


class WorkflowTab(ttk.Frame):
    """
    Base tab for a scanning workflow.

    Subclasses add their own form in _build_form() and submit in
    _submit().
    """

    COLUMNS = ("No", "EPC", "Linen", "Customer", "Room", "Status", "Note")
    with_customer = True
    with_room = False
    with_manual_entry = True

    def __init__(self, parent, workflow, session, api=None, exporter=None,
                 on_status=None, **kwargs):
        """
        Initialize workflow tab.

        Args:
            parent: Parent widget
            workflow: BaseWorkflow instance
            session: RFIDSession instance
            api: InventoryAPI instance
            exporter: CSVExporter instance
            on_status: Callback (message, level) for the status bar
        """
        super().__init__(parent, padding=10, **kwargs)

        self.workflow = workflow
        self.session = session
        self.api = api
        self.exporter = exporter
        self._on_status = on_status

        self._build_ui()

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------

    def _build_ui(self):
        self._build_toolbar()
        if self.with_customer:
            self.customer_selector = CustomerSelector(
                self,
                api=self.api,
                with_room=self.with_room,
                on_change=self._on_scope_changed
            )
            self.customer_selector.pack(fill=tk.X, pady=4)
        self._build_form()
        self._build_table()
        self._build_actions()

    def _build_toolbar(self):
        bar = ttk.Frame(self)
        bar.pack(fill=tk.X)

        self.btn_start = ttk.Button(bar, text="Start Scan", command=self.start_scan)
        self.btn_start.pack(side=tk.LEFT, padx=2)

        self.btn_stop = ttk.Button(bar, text="Stop Scan", command=self.stop_scan,
                                   state=tk.DISABLED)
        self.btn_stop.pack(side=tk.LEFT, padx=2)

        ttk.Button(bar, text="Clear All", command=self._clear_all).pack(side=tk.LEFT, padx=2)
        ttk.Button(bar, text="Remove Selected", command=self._remove_selected).pack(
            side=tk.LEFT, padx=2
        )
        ttk.Button(bar, text="Export CSV", command=self._export).pack(side=tk.LEFT, padx=2)

        if self.with_manual_entry:
            self.ent_epc = ttk.Entry(bar, width=28)
            self.ent_epc.pack(side=tk.RIGHT, padx=2)
            self.ent_epc.bind("<Return>", lambda e: self._manual_entry())
            ttk.Label(bar, text="Manual EPC:").pack(side=tk.RIGHT)

    def _build_form(self):
        pass

    def _build_table(self):
        frame = ttk.Frame(self)
        frame.pack(fill=tk.BOTH, expand=True, pady=5)
        self.tree = self._make_tree(frame)

    def _make_tree(self, parent, height: int = 14) -> ttk.Treeview:
        tree = ttk.Treeview(parent, columns=self.COLUMNS, show="headings", height=height)

        for c in self.COLUMNS:
            tree.heading(c, text=c)
            tree.column(c, width=110, anchor=tk.W)
        tree.column("No", width=40, anchor=tk.CENTER)
        tree.column("EPC", width=220)
        tree.column("Note", width=240)

        ThemeManager.register_tree(tree)

        tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        vsb = ttk.Scrollbar(parent, orient="vertical", command=tree.yview)
        tree.configure(yscrollcommand=vsb.set)
        vsb.pack(side=tk.RIGHT, fill=tk.Y)
        return tree

    def _build_actions(self):
        self.actions = ttk.Frame(self)
        self.actions.pack(fill=tk.X)

    # ------------------------------------------------------------------
    # Table
    # ------------------------------------------------------------------

    @staticmethod
    def _status_text(row: LinenRow) -> str:
        if row.loading:
            return "Checking..."
        if row.is_duplicate:
            return "Duplicate"
        if row.is_non_exist:
            return "Not registered"
        if row.is_valid_customer is False:
            return "Wrong customer"
        if row.is_valid_customer:
            return "Valid"
        return row.status or "-"

    def _row_values(self, number: int, row: LinenRow) -> tuple:
        return (
            number,
            row.epc,
            row.linen_name or "-",
            row.customer_name or "-",
            row.room_name or "-",
            self._status_text(row),
            row.error_message or "",
        )

    def _fill_tree(self, tree: ttk.Treeview, rows: List[LinenRow]):
        tree.delete(*tree.get_children())
        for number, row in enumerate(rows, start=1):
            tree.insert("", tk.END, values=self._row_values(number, row),
                        tags=(row_tag(row),))

    def refresh(self):
        """Redraw the table from the workflow rows."""
        self._fill_tree(self.tree, self.workflow.get_rows())

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _status(self, message: str, level: str = "info"):
        if self._on_status:
            self._on_status(message, level)

    def start_scan(self):
        if not self.session.connected:
            messagebox.showwarning(self.workflow.name, "Reader not connected")
            return
        if self.session.start_scanning(self.workflow.handle_tags):
            self.btn_start.config(state=tk.DISABLED)
            self.btn_stop.config(state=tk.NORMAL)
            self._status(f"{self.workflow.name}: scanning", "info")

    def stop_scan(self):
        self.session.stop_scanning()
        self.btn_start.config(state=tk.NORMAL)
        self.btn_stop.config(state=tk.DISABLED)
        self._status(f"{self.workflow.name}: stopped", "info")

    def deactivate(self):
        """Called when another tab takes over the reader."""
        if str(self.btn_stop["state"]) == tk.NORMAL:
            self.stop_scan()
        self.workflow.clear_all()

    def _clear_all(self):
        self.workflow.clear_all()
        self.refresh()

    def _selected_index(self, tree: Optional[ttk.Treeview] = None) -> int:
        tree = tree or self.tree
        selection = tree.selection()
        if not selection:
            return -1
        return tree.index(selection[0])

    def _remove_selected(self):
        index = self._selected_index()
        if index < 0:
            return
        if not self.workflow.remove_row(index):
            messagebox.showwarning(self.workflow.name, "This row cannot be removed")
        self.refresh()

    def _manual_entry(self):
        epc = self.ent_epc.get().strip()
        if not epc:
            return
        self.ent_epc.delete(0, tk.END)
        handler = getattr(self.workflow, "enter_manual_epc", self.workflow.process_scanned_epc)
        handler(epc)
        self.refresh()

    def _on_scope_changed(self, customer_id, room_id):
        self.workflow.set_scope(customer_id, room_id)
        self.refresh()

    def _export(self):
        if self.exporter is None:
            return
        rows = self.workflow.get_rows()
        if not any(row.has_epc for row in rows):
            messagebox.showwarning("Export", "No data to export")
            return
        try:
            path = self.exporter.export_rows(
                self.workflow.name, rows, metadata=self._export_metadata()
            )
        except OSError as e:
            messagebox.showerror("Export", str(e))
            return
        messagebox.showinfo("Export", f"Saved: {path}")

    def _export_metadata(self) -> Optional[dict]:
        return None

    def _run_submit(self, submit):
        """Run a workflow submit and report the outcome."""
        try:
            result = submit()
        except WorkflowError as e:
            messagebox.showwarning(self.workflow.name, str(e))
            return None
        except InventoryAPIError as e:
            logger.error("%s submit failed: %s", self.workflow.name, e)
            messagebox.showerror(self.workflow.name, f"Error: {e}")
            return None
        self._status(f"{self.workflow.name}: submitted", "success")
        messagebox.showinfo(self.workflow.name, (result or {}).get("message") or "Saved")
        self.refresh()
        return result


class LinenCleanTab(WorkflowTab):
    """Clean-linen processing."""

    def _build_actions(self):
        super()._build_actions()
        ttk.Button(
            self.actions,
            text="Submit Linen Clean",
            style="Primary.TButton",
            command=self._submit
        ).pack(side=tk.RIGHT, padx=2)

    def _submit(self):
        self._run_submit(self.workflow.submit)


class DeliveryTab(WorkflowTab):
    """Delivery with label printing."""

    def __init__(self, parent, workflow, session, api=None, exporter=None,
                 on_status=None, printer=None, printer_settings=None, **kwargs):
        self.printer = printer
        self.printer_settings = printer_settings
        super().__init__(parent, workflow, session, api=api, exporter=exporter,
                         on_status=on_status, **kwargs)

    def _build_form(self):
        form = ttk.Frame(self)
        form.pack(fill=tk.X, pady=4)

        ttk.Label(form, text="Driver:").grid(row=0, column=0, sticky=tk.W)
        self.ent_driver = ttk.Entry(form, width=24)
        self.ent_driver.grid(row=0, column=1, padx=2)

        ttk.Label(form, text="Plate Number:").grid(row=0, column=2, sticky=tk.W, padx=(8, 0))
        self.ent_plate = ttk.Entry(form, width=14)
        self.ent_plate.grid(row=0, column=3, padx=2)

        ttk.Label(form, text="Type:").grid(row=0, column=4, sticky=tk.W, padx=(8, 0))
        self.cmb_type = ttk.Combobox(form, width=12, state="readonly",
                                     values=["DELIVERY", "RETURN"])
        self.cmb_type.current(0)
        self.cmb_type.grid(row=0, column=5, padx=2)

        ttk.Label(form, text="Shift:").grid(row=0, column=6, sticky=tk.W, padx=(8, 0))
        self.cmb_shift = ttk.Combobox(form, width=4, state="readonly",
                                      values=["", *sorted(SHIFT_HOURS)])
        self.cmb_shift.grid(row=0, column=7, padx=2)

    def _export_metadata(self):
        shift = self.cmb_shift.get()
        dates = date_shift(shift)
        return {
            "customer": self.customer_selector.customer_name or "-",
            "driver": self.ent_driver.get().strip() or "-",
            "plate_number": self.ent_plate.get().strip() or "-",
            "shift": shift or "-",
            "shift_date": dates.date_time or "-",
        }

    def _build_actions(self):
        super()._build_actions()
        ttk.Button(
            self.actions,
            text="Submit Delivery",
            style="Primary.TButton",
            command=self._submit
        ).pack(side=tk.RIGHT, padx=2)
        ttk.Button(
            self.actions,
            text="Print Label",
            command=self._print_label
        ).pack(side=tk.RIGHT, padx=2)

    def _on_scope_changed(self, customer_id, room_id):
        self.workflow.validate_all(customer_id, room_id)
        self.refresh()

    def _submit(self):
        if not self.workflow.is_data_valid():
            messagebox.showwarning(
                self.workflow.name,
                "Every tag must be registered to the selected customer"
            )
            return
        driver = self.ent_driver.get().strip()
        plate = self.ent_plate.get().strip()
        label = self.workflow.build_label(
            self.customer_selector.customer_name, driver_name=driver,
            delivery_type=self.cmb_type.get()
        )
        if self._run_submit(lambda: self.workflow.submit(driver, plate)) is not None:
            if messagebox.askyesno(self.workflow.name, "Print delivery label?"):
                self._send_label(label)

    def _print_label(self):
        label = self.workflow.build_label(
            self.customer_selector.customer_name,
            driver_name=self.ent_driver.get().strip(),
            delivery_type=self.cmb_type.get()
        )
        if not label.items:
            messagebox.showwarning("Print", "No valid linen to print")
            return
        self._send_label(label)

    def _send_label(self, label):
        if self.printer is None:
            messagebox.showerror("Print", "No printer selected!")
            return
        settings = self.printer_settings
        payload = self.printer.render_delivery(
            label,
            company_name=settings.company_name if settings else "",
            company_subtitle=settings.company_subtitle if settings else "",
        )
        copies = simpledialog.askinteger("Print", "Copies:", initialvalue=1,
                                         minvalue=1, maxvalue=10, parent=self)
        if not copies:
            return
        try:
            for _ in range(copies):
                self.printer.send(payload)
        except PrinterError as e:
            messagebox.showerror("Print", str(e))
            return
        self._status(f"Label sent to {self.printer.name}", "success")
