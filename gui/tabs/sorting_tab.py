"""
Sorting Tab.

One table per sorting antenna.
"""

import tkinter as tk
from tkinter import ttk

from workflows.sorting import LEFT_ANTENNA, RIGHT_ANTENNA

from .workflow_tab import WorkflowTab


class SortingTab(WorkflowTab):

    COLUMNS = ("No", "EPC", "Linen", "Customer", "Room", "Status")
    with_customer = False
    with_manual_entry = False

    def _build_table(self):
        container = ttk.Frame(self)
        container.pack(fill=tk.BOTH, expand=True, pady=5)

        left = ttk.LabelFrame(container, text=f"Antenna {LEFT_ANTENNA}", padding=5)
        left.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=5)
        self.tree = self._make_tree(left)

        right = ttk.LabelFrame(container, text=f"Antenna {RIGHT_ANTENNA}", padding=5)
        right.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=5)
        self.tree_right = self._make_tree(right)

    def _row_values(self, number, row):
        return super()._row_values(number, row)[:len(self.COLUMNS)]

    def refresh(self):
        self._fill_tree(self.tree, self.workflow.left_rows())
        self._fill_tree(self.tree_right, self.workflow.right_rows())

    def _remove_selected(self):
        # Table indices are per antenna; map back through the EPC
        for tree in (self.tree, self.tree_right):
            for item in tree.selection():
                epc = tree.item(item, "values")[1]
                index = self.workflow.find_row(epc)
                if index != -1:
                    self.workflow.remove_row(index)
        self.refresh()
