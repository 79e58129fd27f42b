"""
Reader Panel Widget.

This widget provides reader connection and per-antenna power controls.
"""

import tkinter as tk
from tkinter import ttk, messagebox
from typing import Optional, Callable

from config.settings import ANTENNA_IDS, DEFAULT_POWER
from core.rfid_reader import MAX_POWER


class ReaderPanel(ttk.LabelFrame):
    """
    Reader connection and control panel.

    Provides:
    - Reader IP/port configuration
    - Antenna enable flags and transmit power (tenths of dBm)
    - Connect/Disconnect and power apply buttons
    """

    def __init__(
        self,
        parent,
        session,
        settings,
        on_reader_connected: Optional[Callable] = None,
        on_reader_disconnected: Optional[Callable] = None,
        **kwargs
    ):
        """
        Initialize reader panel.

        Args:
            parent: Parent widget
            session: RFIDSession instance
            settings: Settings instance
            on_reader_connected: Callback when reader connects
            on_reader_disconnected: Callback when reader disconnects
        """
        super().__init__(parent, text="Reader", padding=10, **kwargs)

        self.session = session
        self.settings = settings

        self._on_connected = on_reader_connected
        self._on_disconnected = on_reader_disconnected

        self._antenna_vars = {}
        self._power_vars = {}

        self._build_ui()

    def _build_ui(self):
        """Build the UI components."""
        self._build_reader_section()

        ttk.Separator(self, orient=tk.HORIZONTAL).pack(fill=tk.X, pady=8)

        self._build_antenna_section()
        self._build_connection_buttons()

    def _build_reader_section(self):
        ttk.Label(self, text="Reader IP:").pack(anchor=tk.W)
        self.ent_ip = ttk.Entry(self)
        self.ent_ip.insert(0, self.settings.reader.ip_address)
        self.ent_ip.pack(fill=tk.X, pady=2)

        ttk.Label(self, text="Port:").pack(anchor=tk.W)
        self.ent_port = ttk.Entry(self)
        self.ent_port.insert(0, str(self.settings.reader.port))
        self.ent_port.pack(fill=tk.X, pady=2)

    def _build_antenna_section(self):
        """Build antenna enable and power rows."""
        ant_frame = ttk.LabelFrame(self, text="Antennas", padding=5)
        ant_frame.pack(fill=tk.X, pady=4)

        ttk.Label(ant_frame, text="Power: 0-300 (x0.1 dBm)", font=("Arial", 9)).grid(
            row=0, column=0, columnspan=3, sticky=tk.W
        )

        reader = self.settings.reader
        for row, antenna_id in enumerate(ANTENNA_IDS, start=1):
            enabled = tk.BooleanVar(value=reader.antenna_enabled.get(antenna_id, False))
            power = tk.IntVar(value=reader.power_settings.get(antenna_id, DEFAULT_POWER))
            self._antenna_vars[antenna_id] = enabled
            self._power_vars[antenna_id] = power

            ttk.Checkbutton(
                ant_frame,
                text=f"Antenna {antenna_id}",
                variable=enabled
            ).grid(row=row, column=0, sticky=tk.W)

            ttk.Spinbox(
                ant_frame,
                from_=0,
                to=MAX_POWER,
                increment=5,
                width=6,
                textvariable=power
            ).grid(row=row, column=1, padx=4, pady=1)

            ttk.Button(
                ant_frame,
                text="Set",
                width=4,
                command=lambda a=antenna_id: self._set_power(a)
            ).grid(row=row, column=2, padx=2)

        self.lbl_antenna_status = ttk.Label(
            ant_frame,
            text="",
            foreground="#1e40af",
            font=("Arial", 9, "bold")
        )
        self.lbl_antenna_status.grid(row=len(ANTENNA_IDS) + 1, column=0, columnspan=3,
                                     sticky=tk.W, pady=(4, 0))

    def _build_connection_buttons(self):
        """Build connect/disconnect buttons."""
        btn_frame = ttk.Frame(self)
        btn_frame.pack(fill=tk.X, pady=4)

        self.btn_connect = ttk.Button(
            btn_frame,
            text="Connect Reader",
            command=self._connect_reader
        )
        self.btn_connect.pack(side=tk.LEFT, expand=True, fill=tk.X, padx=2)

        self.btn_disconnect = ttk.Button(
            btn_frame,
            text="Disconnect",
            command=self._disconnect_reader,
            state=tk.DISABLED
        )
        self.btn_disconnect.pack(side=tk.LEFT, expand=True, fill=tk.X, padx=2)

        ttk.Button(
            self,
            text="Save Power Settings",
            command=self._save_power_settings
        ).pack(fill=tk.X, pady=2)

    def _read_power(self, antenna_id: int) -> Optional[int]:
        try:
            power = int(self._power_vars[antenna_id].get())
        except (tk.TclError, ValueError):
            return None
        if not 0 <= power <= MAX_POWER:
            return None
        return power

    def _collect(self):
        power_settings = {}
        for antenna_id in ANTENNA_IDS:
            power = self._read_power(antenna_id)
            if power is None:
                messagebox.showerror(
                    "Reader", f"Antenna {antenna_id}: power must be 0-{MAX_POWER}."
                )
                return None, None
            power_settings[antenna_id] = power
        antenna_enabled = {a: bool(v.get()) for a, v in self._antenna_vars.items()}
        return power_settings, antenna_enabled

    def _connect_reader(self):
        """Connect to RFID reader."""
        ip = self.ent_ip.get().strip()
        if not ip:
            messagebox.showerror("Reader", "Reader IP is required.")
            return
        try:
            port = int(self.ent_port.get().strip())
        except ValueError:
            messagebox.showerror("Reader", "Port must be a number.")
            return

        power_settings, antenna_enabled = self._collect()
        if power_settings is None:
            return

        self.settings.reader.ip_address = ip
        self.settings.reader.port = port
        self.settings.reader.power_settings.update(power_settings)
        self.settings.reader.antenna_enabled.update(antenna_enabled)
        antennas = self.settings.reader.enabled_antennas

        ok = self.session.connect(
            ip, port, antennas=antennas, power_settings=power_settings
        )

        if ok:
            self.btn_connect.config(state=tk.DISABLED)
            self.btn_disconnect.config(state=tk.NORMAL)
            self._update_antenna_label(antennas)

            if self._on_connected:
                self._on_connected()
        else:
            messagebox.showerror("Reader", "Connection failed. See log for details.")

    def _disconnect_reader(self):
        """Disconnect from reader."""
        self.session.disconnect()

        self.btn_connect.config(state=tk.NORMAL)
        self.btn_disconnect.config(state=tk.DISABLED)
        self.lbl_antenna_status.config(text="")

        if self._on_disconnected:
            self._on_disconnected()

    def _set_power(self, antenna_id: int):
        power = self._read_power(antenna_id)
        if power is None:
            messagebox.showerror("Reader", f"Power must be 0-{MAX_POWER}.")
            return
        self.settings.reader.power_settings[antenna_id] = power
        if self.session.connected:
            self.session.set_power(antenna_id, power)

    def _save_power_settings(self):
        power_settings, antenna_enabled = self._collect()
        if power_settings is None:
            return
        try:
            self.settings.save_power_settings(power_settings, antenna_enabled)
        except OSError as e:
            messagebox.showerror("Reader", f"Could not save settings: {e}")
            return
        messagebox.showinfo("Reader", "Power settings saved.")

    def _update_antenna_label(self, antennas):
        """Update antenna status label."""
        text = "Active: " + " + ".join(f"Ant{a}" for a in antennas)
        self.lbl_antenna_status.config(text=text)

    def set_disconnected(self):
        """Reset the buttons after the reader dropped."""
        self.btn_connect.config(state=tk.NORMAL)
        self.btn_disconnect.config(state=tk.DISABLED)
        self.lbl_antenna_status.config(text="")
