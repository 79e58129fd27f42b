"""
Grouping Tab.

Shows the linen under the reader and the registered tags of the scan.
"""

import tkinter as tk
from tkinter import ttk

from .workflow_tab import WorkflowTab


class GroupingTab(WorkflowTab):

    with_customer = False
    with_manual_entry = False

    def _build_form(self):
        info = ttk.LabelFrame(self, text="Current Linen", padding=8)
        info.pack(fill=tk.X, pady=4)

        self._info_labels = {}
        for column, (key, title) in enumerate((
            ("epc", "EPC"),
            ("customer_name", "Customer"),
            ("linen_name", "Linen"),
            ("room_name", "Room"),
        )):
            ttk.Label(info, text=f"{title}:", style="Header.TLabel").grid(
                row=0, column=column * 2, sticky=tk.W, padx=(0, 4)
            )
            label = ttk.Label(info, text="-")
            label.grid(row=0, column=column * 2 + 1, sticky=tk.W, padx=(0, 16))
            self._info_labels[key] = label

    def refresh(self):
        super().refresh()
        info = self.workflow.current_linen_info
        for key, label in self._info_labels.items():
            label.config(text=getattr(info, key) or "-")
