"""
Register Tab.

Registers fresh tags: one row per scanned EPC, each with a linen and a
room.
"""

import tkinter as tk
from tkinter import ttk, messagebox

from core.inventory_api import InventoryAPIError
from core.models import LinenRow

from .workflow_tab import WorkflowTab


class RegisterTab(WorkflowTab):

    COLUMNS = ("No", "EPC", "Linen", "Room")
    with_room = True

    def _build_form(self):
        self._linens = []

        form = ttk.LabelFrame(self, text="Registration", padding=5)
        form.pack(fill=tk.X, pady=4)

        ttk.Label(form, text="Linen:").grid(row=0, column=0, sticky=tk.W)
        self.cmb_linen = ttk.Combobox(form, width=32, state="readonly")
        self.cmb_linen.grid(row=0, column=1, padx=2)
        ttk.Button(form, text="Load", command=self._load_linens).grid(row=0, column=2, padx=2)

        ttk.Label(form, text="Description:").grid(row=1, column=0, sticky=tk.W)
        self.ent_description = ttk.Entry(form, width=34)
        self.ent_description.grid(row=1, column=1, padx=2, pady=2)

        ttk.Button(
            form,
            text="Assign Room to Selected",
            command=self._assign_room
        ).grid(row=0, column=3, padx=(12, 2))
        ttk.Button(
            form,
            text="Assign Room to Empty Rows",
            command=self._assign_room_to_empty
        ).grid(row=1, column=3, padx=(12, 2))
        ttk.Button(
            form,
            text="Add Row",
            command=self._add_row
        ).grid(row=0, column=4, padx=2)

    def _build_actions(self):
        super()._build_actions()
        self.lbl_count = ttk.Label(self.actions, text="")
        self.lbl_count.pack(side=tk.LEFT)
        ttk.Button(
            self.actions,
            text="Register RFID",
            style="Primary.TButton",
            command=self._submit
        ).pack(side=tk.RIGHT, padx=2)

    def _load_linens(self):
        try:
            self._linens = self.api.get_unregistered_linens() if self.api else []
        except InventoryAPIError as e:
            messagebox.showerror("Linen", f"Error fetching linen: {e}")
            return
        self.cmb_linen["values"] = [
            f"{linen.linen_name} ({linen.linen_id})" for linen in self._linens
        ]

    @property
    def linen_id(self) -> str:
        index = self.cmb_linen.current()
        if index < 0 or index >= len(self._linens):
            return ""
        return self._linens[index].linen_id

    def _room_name(self, room_id: str) -> str:
        for room in self.customer_selector.rooms:
            if room.room_id == room_id:
                return room.room_name
        return room_id or "-"

    def _row_values(self, number: int, row: LinenRow) -> tuple:
        return (
            number,
            row.epc or "",
            row.linen_id or self.linen_id or "-",
            self._room_name(row.room_id),
        )

    def refresh(self):
        super().refresh()
        self.lbl_count.config(
            text=f"Complete rows: {self.workflow.complete_count(self.linen_id)}"
            f" / {self.workflow.filled_count()}"
        )

    def _on_scope_changed(self, customer_id, room_id):
        # Registration is not scoped; the room picker only feeds row assignment
        self.refresh()

    def _assign_room(self):
        index = self._selected_index()
        room_id = self.customer_selector.room_id
        if index < 0 or not room_id:
            messagebox.showwarning(self.workflow.name, "Select a row and a room")
            return
        self.workflow.update_row(index, room_id=room_id)
        self.refresh()

    def _assign_room_to_empty(self):
        room_id = self.customer_selector.room_id
        if not room_id:
            messagebox.showwarning(self.workflow.name, "Select a room")
            return
        for index, row in enumerate(self.workflow.get_rows()):
            if row.has_epc and not row.room_id:
                self.workflow.update_row(index, room_id=room_id)
        self.refresh()

    def _add_row(self):
        self.workflow.add_row()
        self.refresh()

    def _submit(self):
        customer_id = self.customer_selector.customer_id
        description = self.ent_description.get().strip()
        if not self.workflow.is_form_valid(customer_id, description, self.linen_id):
            messagebox.showwarning(
                self.workflow.name,
                "Customer, description and at least one complete row are required"
            )
            return
        result = self._run_submit(lambda: self.workflow.submit(
            customer_id, self.linen_id, description,
            self.customer_selector.room_id or ""
        ))
        if result is not None:
            self.ent_description.delete(0, tk.END)
