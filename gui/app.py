"""
Main Application for the Linen RFID Dashboard.

This is the main GUI application that ties together all components.
Features:
- Reader connection with per-antenna power
- One tab per workflow sharing the reader session
- Light/Dark theme toggle
- Auto-save settings on close
- Status LED indicator and UI log
"""

import logging
import os
import tkinter as tk
from tkinter import ttk, messagebox
from concurrent.futures import ThreadPoolExecutor

# Local imports
from config.settings import CONFIG_ENV_VAR, Settings
from core.epc_cache import EPCCache
from core.inventory_api import InventoryAPI
from core.printer import printer_from_settings
from core.rfid_reader import RFIDReader
from core.session import RFIDSession
from utils.csv_exporter import CSVExporter
from utils.logging import Logger
from workflows import (
    DeliveryWorkflow,
    GroupingWorkflow,
    LinenCleanWorkflow,
    RegisterWorkflow,
    SortingWorkflow,
)

from gui.styles import ThemeManager, StatusIndicator
from gui.widgets.reader_panel import ReaderPanel
from gui.widgets.status_bar import StatusBar
from gui.widgets.log_viewer import LogViewer
from gui.tabs.workflow_tab import DeliveryTab, LinenCleanTab
from gui.tabs.grouping_tab import GroupingTab
from gui.tabs.register_tab import RegisterTab
from gui.tabs.sorting_tab import SortingTab

logger = logging.getLogger(__name__)

UPDATE_INTERVAL_MS = 500
LOOKUP_WORKERS = 4


class DashboardApp:
    """
    Main dashboard application.

    Integrates all components:
    - Reader panel and LED indicator
    - Workflow tabs (Linen Clean, Delivery, Grouping, Register, Sorting)
    - Theme toggle (Ctrl+D), quit (Ctrl+Q)
    - Auto-save settings on close
    """

    def __init__(self, root: tk.Tk, config_path: str = None):
        """
        Initialize the application.

        Args:
            root: Tkinter root window
            config_path: Settings file; defaults to the user-data directory
        """
        self.root = root
        self.config_path = config_path or os.environ.get(CONFIG_ENV_VAR)

        # Initialize settings
        self.settings = Settings.load_from_file(self.config_path)

        self.root.title(f"{self.settings.app_name} v{self.settings.version}")
        self.root.geometry("1400x900")

        # Initialize theme manager
        ThemeManager.init(root)

        # UI log, also fed by the module loggers
        self.log = Logger()
        self.log.attach("core", "workflows", "utils", "gui", "config")

        # Initialize core components
        self.reader = RFIDReader()
        self.reader.set_on_state_change_callback(self._on_reader_state)
        self.session = RFIDSession(
            self.reader,
            poll_interval_s=self.settings.reader.poll_interval_s,
            log=self.log
        )
        self.api = InventoryAPI.from_settings(self.settings.api)
        self.printer = printer_from_settings(self.settings.printer)
        self.exporter = CSVExporter(self.settings.export_dir)
        self.executor = ThreadPoolExecutor(
            max_workers=LOOKUP_WORKERS, thread_name_prefix="epc-lookup"
        )

        # One cache per workflow so switching workflows starts clean
        self.workflows = [
            cls(EPCCache.for_api(self.api), api=self.api, log=self.log, executor=self.executor)
            for cls in (
                LinenCleanWorkflow,
                DeliveryWorkflow,
                GroupingWorkflow,
                RegisterWorkflow,
                SortingWorkflow,
            )
        ]

        # Apply saved theme
        ThemeManager.set_theme(self.settings.theme)

        # Build UI
        self._build_ui()

        # Setup keyboard shortcuts
        self._setup_keyboard_shortcuts()

        # Start update loop
        self._update_id = None
        self._start_update_loop()

        # Bind cleanup
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _build_ui(self):
        """Build the main UI layout."""
        self._build_menu()

        main_pane = ttk.PanedWindow(self.root, orient=tk.HORIZONTAL)
        main_pane.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

        # LEFT SIDEBAR
        sidebar = ttk.Frame(main_pane, width=320)
        main_pane.add(sidebar, weight=0)

        status_frame = ttk.Frame(sidebar)
        status_frame.pack(fill=tk.X, pady=5)

        self.led_reader = StatusIndicator(status_frame)
        self.led_reader.pack(side=tk.LEFT, padx=4)
        ttk.Label(status_frame, text="Reader").pack(side=tk.LEFT)

        self.btn_theme = ttk.Button(
            status_frame,
            text="Dark" if self.settings.theme == "light" else "Light",
            width=6,
            command=self._toggle_theme
        )
        self.btn_theme.pack(side=tk.RIGHT, padx=4)

        self.reader_panel = ReaderPanel(
            sidebar,
            session=self.session,
            settings=self.settings,
            on_reader_connected=self._on_reader_connected,
            on_reader_disconnected=self._on_reader_disconnected
        )
        self.reader_panel.pack(fill=tk.X, pady=5)

        # RIGHT MAIN AREA
        main_area = ttk.Frame(main_pane)
        main_pane.add(main_area, weight=1)

        self.notebook = ttk.Notebook(main_area)
        self.notebook.pack(fill=tk.BOTH, expand=True)

        common = dict(
            session=self.session,
            api=self.api,
            exporter=self.exporter,
            on_status=self._set_status
        )
        linen_clean, delivery, grouping, register, sorting = self.workflows
        self.tabs = [
            LinenCleanTab(self.notebook, linen_clean, **common),
            DeliveryTab(self.notebook, delivery, printer=self.printer,
                        printer_settings=self.settings.printer, **common),
            GroupingTab(self.notebook, grouping, **common),
            RegisterTab(self.notebook, register, **common),
            SortingTab(self.notebook, sorting, **common),
        ]
        for tab in self.tabs:
            self.notebook.add(tab, text=tab.workflow.name)

        self._active_tab = 0
        self.notebook.bind("<<NotebookTabChanged>>", self._on_tab_changed)

        self.log_viewer = LogViewer(main_area, self.log)
        self.log_viewer.pack(fill=tk.X, pady=5)

        self.status_bar = StatusBar(self.root)
        self.status_bar.pack(side=tk.BOTTOM, fill=tk.X, padx=5, pady=2)

    def _build_menu(self):
        """Build menu bar."""
        menubar = tk.Menu(self.root)
        self.root.config(menu=menubar)

        file_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="File", menu=file_menu)
        file_menu.add_command(label="Export Live Snapshot (CSV)", command=self._quick_export)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self._on_close, accelerator="Ctrl+Q")

        view_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="View", menu=view_menu)
        view_menu.add_command(label="Toggle Dark Mode", command=self._toggle_theme, accelerator="Ctrl+D")

    def _setup_keyboard_shortcuts(self):
        """Setup keyboard shortcuts."""
        self.root.bind("<Control-d>", lambda e: self._toggle_theme())
        self.root.bind("<Control-D>", lambda e: self._toggle_theme())
        self.root.bind("<Control-q>", lambda e: self._on_close())
        self.root.bind("<Control-Q>", lambda e: self._on_close())

    def _toggle_theme(self):
        """Toggle between light and dark themes."""
        new_theme = ThemeManager.toggle_theme()
        self.btn_theme.config(text="Light" if new_theme == "dark" else "Dark")

        self.led_reader.refresh_theme()
        self.log_viewer.refresh_theme()

        self.settings.theme = new_theme

    def _set_status(self, message: str, level: str = "info"):
        self.status_bar.set_status(message, level)

    @property
    def active_tab(self):
        return self.tabs[self._active_tab]

    def _on_tab_changed(self, event=None):
        """Stop the previous workflow's scan and reset its EPC data."""
        index = self.notebook.index(self.notebook.select())
        if index == self._active_tab:
            return
        self.active_tab.deactivate()
        self._active_tab = index
        self.active_tab.refresh()

    def _start_update_loop(self):
        """Start the UI update loop."""
        self._update_ui()

    def _update_ui(self):
        """Update UI periodically."""
        try:
            self.led_reader.set_state(self._led_state())

            self.log_viewer.flush()

            tab = self.active_tab
            tab.refresh()
            self.status_bar.set_counts(
                tab.workflow.name,
                tab.workflow.valid_count(),
                tab.workflow.invalid_count(),
                scanning=self.session.scanning
            )
        except tk.TclError as e:
            logger.error("Update error: %s", e)

        self._update_id = self.root.after(UPDATE_INTERVAL_MS, self._update_ui)

    def _led_state(self) -> str:
        if not self.session.connected:
            return "off"
        return "scanning" if self.session.scanning else "connected"

    def _on_reader_state(self, connected: bool):
        # Runs on the reactor thread; the LED follows in the update loop
        self.log.info(f"Reader {'online' if connected else 'offline'}")

    def _on_reader_connected(self):
        self.status_bar.set_status("Reader connected", "success")
        self.led_reader.set_state("connected")

    def _on_reader_disconnected(self):
        self.status_bar.set_status("Reader disconnected", "warning")
        self.led_reader.set_state("off")
        for tab in self.tabs:
            tab.btn_start.config(state=tk.NORMAL)
            tab.btn_stop.config(state=tk.DISABLED)

    def _quick_export(self):
        """Export the reader's current tag list."""
        if not self.session.connected:
            messagebox.showwarning("Export", "Reader not connected")
            return

        tags = self.reader.get_tags()
        if not tags:
            messagebox.showwarning("Export", "No data to export")
            return

        try:
            path = self.exporter.export_live_snapshot(tags)
        except OSError as e:
            messagebox.showerror("Export", str(e))
            return
        self.log.info(f"Exported: {path}")
        messagebox.showinfo("Export", f"Saved: {path}")

    def _on_close(self):
        """Handle window close."""
        try:
            self.settings.reader.ip_address = self.reader_panel.ent_ip.get().strip()
            self.settings.save_to_file(self.config_path)
        except OSError as e:
            logger.error("Error saving settings: %s", e)

        if self._update_id:
            self.root.after_cancel(self._update_id)

        if self.session.connected:
            self.session.disconnect()

        self.executor.shutdown(wait=False)
        self.log.detach()
        self.root.destroy()

    def run(self):
        """Start the application main loop."""
        self.root.mainloop()


def main():
    """Application entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    root = tk.Tk()
    app = DashboardApp(root)
    app.run()


if __name__ == "__main__":
    main()
