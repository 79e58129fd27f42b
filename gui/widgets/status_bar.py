"""
Status Bar Widget.

Status message plus the valid/invalid counts of the active workflow.
"""

import tkinter as tk
from tkinter import ttk

from gui.styles import LEVELS


class StatusBar(ttk.Frame):

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)

        self.lbl_status = ttk.Label(self, text="Ready.", style="Info.TLabel")
        self.lbl_status.pack(side=tk.LEFT, anchor=tk.W)

        self.lbl_counts = ttk.Label(self, text="", style="Muted.TLabel")
        self.lbl_counts.pack(side=tk.RIGHT, anchor=tk.E)

    def set_status(self, message: str, level: str = "info"):
        """
        Update status message.

        Args:
            message: Status message
            level: info, success, warning or error
        """
        if level not in LEVELS:
            level = "info"
        self.lbl_status.config(text=message, style=f"{level.capitalize()}.TLabel")

    def set_counts(self, workflow_name: str, valid: int, invalid: int, scanning: bool = False):
        state = "scanning" if scanning else "idle"
        self.lbl_counts.config(
            text=f"{workflow_name} ({state}) | Valid: {valid} | Invalid: {invalid}"
        )

    def clear(self):
        self.set_status("Ready.")
