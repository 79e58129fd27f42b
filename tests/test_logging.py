import logging
import re

import pytest

from utils.logging import Logger


@pytest.fixture
def log():
    log = Logger(max_messages=5)
    yield log
    log.detach()


def test_messages_are_formatted(log):
    log.info("reader connected")
    log.warning("weak signal")
    log.error("lookup failed")

    messages = log.get_messages()
    assert len(messages) == 3
    assert re.match(r"^\[\d{2}:\d{2}:\d{2}\] \[INFO\] reader connected$", messages[0])
    assert "[WARNING] weak signal" in messages[1]
    assert "[ERROR] lookup failed" in messages[2]


def test_buffer_is_bounded(log):
    for i in range(8):
        log.info(f"message {i}")

    messages = log.get_messages(count=0)
    assert len(messages) == 5
    assert messages[-1].endswith("message 7")
    assert len(log.get_messages(count=2)) == 2


def test_callback(log):
    received = []
    log.set_callback(received.append)

    log.info("hello")

    assert len(received) == 1
    assert received[0].endswith("hello")


def test_clear(log):
    log.info("hello")
    log.clear()
    assert log.get_messages() == []


def test_attached_loggers_are_forwarded(log):
    log.attach("tests.forwarded")
    module_logger = logging.getLogger("tests.forwarded")
    module_logger.setLevel(logging.DEBUG)

    module_logger.info("EPC %s added", "E200")
    module_logger.debug("not shown")

    messages = log.get_messages()
    assert len(messages) == 1
    assert "[INFO] EPC E200 added" in messages[0]

    log.detach()
    module_logger.info("after detach")
    assert len(log.get_messages()) == 1


def test_own_messages_are_not_duplicated():
    log = Logger()
    log.attach()
    try:
        log.info("only once")
    finally:
        log.detach()

    assert len(log.get_messages()) == 1
