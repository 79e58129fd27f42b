import threading
from unittest.mock import MagicMock

import pytest

from core.models import TagReading
from core.rfid_reader import RFIDReaderError
from core.session import RFIDSession
from utils.logging import Logger


@pytest.fixture
def reader():
    reader = MagicMock()
    reader.connected = True
    reader.get_tags.return_value = [TagReading(epc="E200AAAA")]
    reader.stop_inventory.return_value = {"success": True, "message": "Inventory stopped"}
    return reader


@pytest.fixture
def log():
    return Logger()


@pytest.fixture
def session(reader, log):
    session = RFIDSession(reader, poll_interval_s=0.01, log=log)
    yield session
    session.stop_scanning()


def test_connect_logs_result(session, reader, log):
    reader.connect.return_value = "Connected to 10.0.0.5:5084"

    assert session.connect("10.0.0.5", 5084)
    assert "Connected: Connected to 10.0.0.5:5084" in log.get_messages()[-1]


def test_connect_error_is_logged_not_raised(session, reader, log):
    reader.connect.side_effect = RFIDReaderError("refused")

    assert session.connect("10.0.0.5", 5084) is False
    assert "[ERROR] Connect Error: refused" in log.get_messages()[-1]


def test_set_power_error_is_logged(session, reader, log):
    reader.set_power.side_effect = ValueError("Invalid antenna ID. Must be between 1 and 4")

    assert session.set_power(7, 100) is False
    assert "SetPower Error" in log.get_messages()[-1]


def test_get_power_error_returns_none(session, reader):
    reader.get_power.side_effect = RFIDReaderError("Not connected to RFID reader")
    assert session.get_power(1) is None


def test_poll_once_delivers_batch(session, reader):
    received = []
    session._listener = received.append

    session.poll_once()

    assert received == [reader.get_tags.return_value]


def test_scanning_polls_listener(session, reader):
    delivered = threading.Event()
    batches = []

    def listener(tags):
        batches.append(tags)
        delivered.set()

    assert session.start_scanning(listener)
    assert session.scanning
    assert delivered.wait(2)

    assert session.stop_scanning()
    assert not session.scanning
    reader.start_inventory.assert_called_once()
    reader.stop_inventory.assert_called_once()
    assert batches[0][0].epc == "E200AAAA"


def test_new_scan_replaces_listener(session, reader):
    first = MagicMock()
    second_called = threading.Event()

    session.start_scanning(first)
    session.start_scanning(lambda tags: second_called.set())

    assert second_called.wait(2)
    assert reader.start_inventory.call_count == 2
    assert reader.stop_inventory.call_count == 1


def test_start_error_is_logged(session, reader, log):
    reader.start_inventory.side_effect = RFIDReaderError("Not connected to RFID reader")

    assert session.start_scanning(MagicMock()) is False
    assert not session.scanning
    assert "Start Error" in log.get_messages()[-1]


def test_poll_errors_do_not_stop_loop(session, reader):
    calls = []
    recovered = threading.Event()

    def get_tags():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("socket closed")
        recovered.set()
        return []

    reader.get_tags.side_effect = get_tags
    session.start_scanning(MagicMock())

    assert recovered.wait(2)


def test_disconnect_stops_scanning(session, reader):
    reader.disconnect.return_value = "Disconnected"
    session.start_scanning(MagicMock())

    assert session.disconnect()
    assert not session.scanning
    reader.disconnect.assert_called_once()


def test_status_includes_scanning(session, reader):
    reader.status.return_value = {"connected": True, "inventory_running": False}
    assert session.status() == {"connected": True, "inventory_running": False, "scanning": False}
