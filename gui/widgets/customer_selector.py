"""
Customer Selector Widget.

Customer (and optionally room) comboboxes filled from the inventory API.
"""

import logging
import tkinter as tk
from tkinter import ttk, messagebox
from typing import Callable, List, Optional

from core.inventory_api import InventoryAPIError
from core.models import Customer, Room

logger = logging.getLogger(__name__)


class CustomerSelector(ttk.Frame):
    """
    Customer/room picker.

    ``on_change`` is called with (customer_id, room_id) whenever the
    selection changes; both are None when nothing is selected.
    """

    def __init__(
        self,
        parent,
        api,
        with_room: bool = False,
        on_change: Optional[Callable[[Optional[str], Optional[str]], None]] = None,
        **kwargs
    ):
        super().__init__(parent, **kwargs)

        self.api = api
        self.with_room = with_room
        self._on_change = on_change

        self._customers: List[Customer] = []
        self._rooms: List[Room] = []

        self._build_ui()

    def _build_ui(self):
        ttk.Label(self, text="Customer:").grid(row=0, column=0, sticky=tk.W)
        self.ent_search = ttk.Entry(self, width=14)
        self.ent_search.grid(row=0, column=1, padx=2)
        self.ent_search.bind("<Return>", lambda e: self.load_customers())

        self.cmb_customer = ttk.Combobox(self, width=32, state="readonly")
        self.cmb_customer.grid(row=0, column=2, padx=2)
        self.cmb_customer.bind("<<ComboboxSelected>>", self._customer_selected)

        ttk.Button(
            self,
            text="Search",
            command=self.load_customers
        ).grid(row=0, column=3, padx=2)

        if self.with_room:
            ttk.Label(self, text="Room:").grid(row=1, column=0, sticky=tk.W)
            self.cmb_room = ttk.Combobox(self, width=32, state="readonly")
            self.cmb_room.grid(row=1, column=2, padx=2, pady=2)
            self.cmb_room.bind("<<ComboboxSelected>>", lambda e: self._notify())

    def load_customers(self):
        """Fetch the customer list matching the search box."""
        if self.api is None:
            return
        try:
            self._customers = self.api.get_customers(self.ent_search.get().strip())
        except InventoryAPIError as e:
            messagebox.showerror("Customer", f"Error fetching customers: {e}")
            return
        self.cmb_customer["values"] = [
            f"{c.customer_name} ({c.customer_id})" for c in self._customers
        ]
        self.cmb_customer.set("")
        self._clear_rooms()
        self._notify()

    def _load_rooms(self, customer_id: str):
        try:
            self._rooms = self.api.get_rooms(customer_id)
        except InventoryAPIError as e:
            logger.error("Error fetching rooms for %s: %s", customer_id, e)
            self._rooms = []
        self.cmb_room["values"] = [""] + [r.room_name for r in self._rooms]
        self.cmb_room.set("")

    def _clear_rooms(self):
        self._rooms = []
        if self.with_room:
            self.cmb_room["values"] = []
            self.cmb_room.set("")

    def _customer_selected(self, event=None):
        customer = self.selected_customer
        if self.with_room:
            if customer:
                self._load_rooms(customer.customer_id)
            else:
                self._clear_rooms()
        self._notify()

    def _notify(self):
        if self._on_change:
            self._on_change(self.customer_id, self.room_id)

    @property
    def selected_customer(self) -> Optional[Customer]:
        index = self.cmb_customer.current()
        if index < 0 or index >= len(self._customers):
            return None
        return self._customers[index]

    @property
    def selected_room(self) -> Optional[Room]:
        if not self.with_room:
            return None
        # Index 0 is the "any room" entry
        index = self.cmb_room.current() - 1
        if index < 0 or index >= len(self._rooms):
            return None
        return self._rooms[index]

    @property
    def customer_id(self) -> Optional[str]:
        customer = self.selected_customer
        return customer.customer_id if customer else None

    @property
    def customer_name(self) -> str:
        customer = self.selected_customer
        return customer.customer_name if customer else ""

    @property
    def room_id(self) -> Optional[str]:
        room = self.selected_room
        return room.room_id if room else None

    @property
    def rooms(self) -> List[Room]:
        return list(self._rooms)

    def reset(self):
        self.cmb_customer.set("")
        self._clear_rooms()
