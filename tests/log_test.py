"""Tests for karalis.log."""

from karalis import log


def test_callback_receives_messages():
    received = []
    log.set_callback(lambda level, msg: received.append((level, msg)))
    try:
        log.set_level(log.Level.DEBUG)
        log.info("[Test] hello")
        log.warning("[Test] careful")
    finally:
        log.set_callback(None)
        log.set_level(log.Level.WARN)

    assert (int(log.Level.INFO), "[Test] hello") in received
    assert (int(log.Level.WARN), "[Test] careful") in received


def test_level_filters_messages():
    received = []
    log.set_callback(lambda level, msg: received.append(msg))
    try:
        log.set_level(log.Level.ERROR)
        log.warn("dropped")
        log.error("kept")
    finally:
        log.set_callback(None)
        log.set_level(log.Level.WARN)

    assert received == ["kept"]


def test_exception_includes_context_and_traceback():
    received = []
    log.set_callback(lambda level, msg: received.append(msg))
    try:
        try:
            raise ValueError("bad value")
        except ValueError as e:
            log.error(e, "Loading model")
    finally:
        log.set_callback(None)

    assert len(received) == 1
    assert received[0].startswith("Loading model: ValueError: bad value")
    assert "Traceback" in received[0]


def test_removing_callback():
    received = []
    log.set_callback(lambda level, msg: received.append(msg))
    log.set_callback(None)
    log.error("nobody listens")
    assert received == []
