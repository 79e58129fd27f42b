"""
Logging utilities for the Linen RFID Dashboard.

``Logger`` is the text log shown in the GUI. It is also a
``logging.Handler``, so records from the module loggers end up in the
same view.
"""

import logging
from collections import deque
from datetime import datetime
from typing import Optional, Callable

UI_LOGGER_NAME = "linen_rfid.ui"

_ui_logger = logging.getLogger(UI_LOGGER_NAME)
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Logger(logging.Handler):
    """
    Simple logger with callback support for GUI integration.
    """

    def __init__(
        self,
        callback: Optional[Callable[[str], None]] = None,
        max_messages: int = 1000,
        level: int = logging.INFO
    ):
        """
        Initialize logger.

        Args:
            callback: Optional callback for log messages (e.g., to update GUI)
            max_messages: Number of messages kept in the buffer
            level: Minimum level of forwarded module log records
        """
        super().__init__(level)
        self._callback = callback
        self._messages = deque(maxlen=max_messages)
        self._attached = []

    def set_callback(self, callback: Optional[Callable[[str], None]]):
        """Set callback for log messages."""
        self._callback = callback

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message.

        Args:
            message: Log message
            level: Log level (INFO, WARNING, ERROR)
        """
        self._append(message, level)
        _ui_logger.log(logging.getLevelName(level) if level in _LEVELS else logging.INFO, message)

    def _append(self, message: str, level: str):
        timestamp = datetime.now().strftime("%H:%M:%S")
        formatted = f"[{timestamp}] [{level}] {message}"

        with self.lock:
            self._messages.append(formatted)

        callback = self._callback
        if callback:
            callback(formatted)

    def info(self, message: str):
        """Log info message."""
        self.log(message, "INFO")

    def warning(self, message: str):
        """Log warning message."""
        self.log(message, "WARNING")

    def error(self, message: str):
        """Log error message."""
        self.log(message, "ERROR")

    def get_messages(self, count: int = 100) -> list:
        """Get recent log messages."""
        with self.lock:
            messages = list(self._messages)
        return messages[-count:] if count else messages

    def clear(self):
        """Clear log messages."""
        with self.lock:
            self._messages.clear()

    # ------------------------------------------------------------------
    # logging.Handler
    # ------------------------------------------------------------------

    def emit(self, record: logging.LogRecord):
        # Our own messages already went through log()
        if record.name == UI_LOGGER_NAME:
            return
        try:
            self._append(record.getMessage(), record.levelname)
        except Exception:
            self.handleError(record)

    def attach(self, *logger_names: str):
        """Forward records of the named stdlib loggers into this log."""
        for name in logger_names or ("",):
            logging.getLogger(name).addHandler(self)
            self._attached.append(name)

    def detach(self):
        for name in self._attached:
            logging.getLogger(name).removeHandler(self)
        self._attached = []

