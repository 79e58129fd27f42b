"""
Settings and configuration management for the Linen RFID Dashboard.

This module provides centralized configuration with dataclasses for
reader settings, inventory API settings, printer settings and
application-wide settings. Settings persist as JSON in the user-data
directory.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
import json
import logging
import os

logger = logging.getLogger(__name__)

APP_DIR_NAME = "linen-rfid-dashboard"
CONFIG_ENV_VAR = "LINEN_RFID_CONFIG"
TOKEN_ENV_VAR = "LINEN_API_TOKEN"

ANTENNA_IDS = (1, 2, 3, 4)
DEFAULT_POWER = 150  # tenths of dBm


def user_data_dir() -> str:
    """Return the per-user data directory for the dashboard."""
    base = os.environ.get("APPDATA") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, APP_DIR_NAME)


def default_config_path() -> str:
    """Config path, overridable with the LINEN_RFID_CONFIG variable."""
    return os.environ.get(CONFIG_ENV_VAR) or os.path.join(user_data_dir(), "config.json")


@dataclass
class ReaderSettings:
    """RFID Reader configuration settings."""
    ip_address: str = "192.168.100.10"
    port: int = 5084  # LLRP default port
    poll_interval_s: float = 0.5

    # Transmit power per antenna in tenths of dBm (0-300)
    power_settings: Dict[int, int] = field(
        default_factory=lambda: {ant: DEFAULT_POWER for ant in ANTENNA_IDS}
    )
    antenna_enabled: Dict[int, bool] = field(
        default_factory=lambda: {ant: False for ant in ANTENNA_IDS}
    )

    @property
    def enabled_antennas(self):
        """Enabled antenna IDs; all of them when none is ticked."""
        enabled = [ant for ant, on in sorted(self.antenna_enabled.items()) if on]
        return enabled or list(ANTENNA_IDS)

    def get_power_dbm(self, antenna_id: int) -> float:
        return self.power_settings.get(antenna_id, DEFAULT_POWER) / 10.0


@dataclass
class ApiSettings:
    """Remote inventory API settings."""
    base_url: str = "https://app.nci.co.id/base_linen/api"
    token: str = ""
    timeout_s: float = 10.0

    def resolve_token(self) -> str:
        return os.environ.get(TOKEN_ENV_VAR) or self.token


@dataclass
class PrinterSettings:
    """Label printer settings."""
    host: str = ""
    port: int = 9100
    windows_printer_name: Optional[str] = None
    company_name: str = "PT JALIN MITRA NUSANTARA"
    company_subtitle: str = "(Obsesiman)"


@dataclass
class Settings:
    """Main application settings container."""
    reader: ReaderSettings = field(default_factory=ReaderSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    printer: PrinterSettings = field(default_factory=PrinterSettings)

    # Paths
    export_dir: str = "exports"

    # Application info
    app_name: str = "Linen RFID Dashboard"
    version: str = "1.0.0"
    theme: str = "light"

    def to_dict(self) -> dict:
        return {
            "reader": {
                "ip": self.reader.ip_address,
                "port": self.reader.port,
                "poll_interval_s": self.reader.poll_interval_s,
                "power_settings": {str(k): v for k, v in self.reader.power_settings.items()},
                "antenna_enabled": {str(k): v for k, v in self.reader.antenna_enabled.items()},
            },
            "api": {
                "base_url": self.api.base_url,
                "token": self.api.token,
                "timeout_s": self.api.timeout_s,
            },
            "printer": {
                "host": self.printer.host,
                "port": self.printer.port,
                "windows_printer_name": self.printer.windows_printer_name,
                "company_name": self.printer.company_name,
                "company_subtitle": self.printer.company_subtitle,
            },
            "app": {
                "export_dir": self.export_dir,
                "theme": self.theme,
            },
        }

    def save_to_file(self, filepath: Optional[str] = None):
        """Save current settings to JSON file."""
        filepath = filepath or default_config_path()
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_from_file(cls, filepath: Optional[str] = None) -> "Settings":
        """
        Load settings from JSON file.

        A missing file is created with defaults. An unreadable or invalid
        file is logged and the defaults are returned.
        """
        filepath = filepath or default_config_path()
        settings = cls()

        if not os.path.exists(filepath):
            try:
                settings.save_to_file(filepath)
            except OSError as e:
                logger.error("Error creating default config %s: %s", filepath, e)
            return settings

        try:
            with open(filepath, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error loading settings from %s: %s", filepath, e)
            return settings

        try:
            settings._apply(data)
        except (TypeError, ValueError, AttributeError) as e:
            logger.error("Invalid settings in %s, using defaults: %s", filepath, e)
            return cls()

        return settings

    def _apply(self, data: dict):
        """Copy the JSON sections onto these settings."""
        reader = data.get("reader", {})
        if "ip" in reader:
            self.reader.ip_address = reader["ip"]
        if "port" in reader:
            self.reader.port = int(reader["port"])
        if "poll_interval_s" in reader:
            self.reader.poll_interval_s = float(reader["poll_interval_s"])
        for key, value in reader.get("power_settings", {}).items():
            self.reader.power_settings[int(key)] = int(value)
        for key, value in reader.get("antenna_enabled", {}).items():
            self.reader.antenna_enabled[int(key)] = bool(value)

        for section, target in (("api", self.api), ("printer", self.printer)):
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)

        app = data.get("app", {})
        self.export_dir = app.get("export_dir", self.export_dir)
        self.theme = app.get("theme", self.theme)

    def save_power_settings(
        self,
        power_settings: Dict[int, int],
        antenna_enabled: Dict[int, bool],
        filepath: Optional[str] = None
    ):
        """Update per-antenna power and enable flags, then persist."""
        self.reader.power_settings.update(power_settings)
        self.reader.antenna_enabled.update(antenna_enabled)
        self.save_to_file(filepath)
