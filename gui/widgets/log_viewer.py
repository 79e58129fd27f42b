"""
Log Viewer Widget.

Shows the UI log. Messages may arrive from any thread; they are queued
and drained on the Tk thread.
"""

import queue
import tkinter as tk
from tkinter import ttk

from gui.styles import ThemeManager


class LogViewer(ttk.LabelFrame):
    """Text view bound to a utils.logging.Logger."""

    def __init__(self, parent, logger, max_lines: int = 1000, **kwargs):
        super().__init__(parent, text="Log", padding=10, **kwargs)

        self.logger = logger
        self.max_lines = max_lines
        self._pending = queue.Queue()

        self._build_ui()

        for message in logger.get_messages(count=0):
            self._append(message)
        logger.set_callback(self._pending.put)

    def _build_ui(self):
        self.txt_log = tk.Text(self, height=10, font=("Courier New", 10), state=tk.DISABLED)
        self.txt_log.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        vsb = ttk.Scrollbar(self, orient="vertical", command=self.txt_log.yview)
        self.txt_log.configure(yscrollcommand=vsb.set)
        vsb.pack(side=tk.RIGHT, fill=tk.Y)
        self.refresh_theme()

        ttk.Button(
            self,
            text="Clear Log",
            command=self._clear_log
        ).pack(side=tk.BOTTOM, anchor=tk.E)

    def refresh_theme(self):
        colors = ThemeManager.get_colors()
        self.txt_log.configure(
            bg=colors["entry_bg"], fg=colors["fg"], insertbackground=colors["fg"]
        )

    def flush(self):
        """Move queued messages into the text view. Call from the Tk thread."""
        while True:
            try:
                message = self._pending.get_nowait()
            except queue.Empty:
                break
            self._append(message)

    def _append(self, message: str):
        self.txt_log.config(state=tk.NORMAL)
        self.txt_log.insert(tk.END, message + "\n")
        lines = int(self.txt_log.index("end-1c").split(".")[0])
        if lines > self.max_lines:
            self.txt_log.delete("1.0", f"{lines - self.max_lines}.0")
        self.txt_log.see(tk.END)
        self.txt_log.config(state=tk.DISABLED)

    def _clear_log(self):
        self.logger.clear()
        self.txt_log.config(state=tk.NORMAL)
        self.txt_log.delete("1.0", tk.END)
        self.txt_log.config(state=tk.DISABLED)
