import logging

from stablelocator.tracing import collecting_trace_hook, logging_trace_hook


def test_collecting_trace_hook_copies_payloads() -> None:
    events: list = []
    hook = collecting_trace_hook(events)
    payload = {"expression": "//li", "accepted": False}

    hook("candidate", payload)
    payload["accepted"] = True

    assert events == [("candidate", {"expression": "//li", "accepted": False})]


def test_logging_trace_hook_formats_events(caplog) -> None:
    logger = logging.getLogger("tests.stablelocator.trace")
    caplog.set_level(logging.DEBUG, logger=logger.name)

    logging_trace_hook(logger)("candidate", {"expression": "//li", "accepted": False})

    assert "candidate expression='//li' accepted=False" in caplog.text


def test_logging_trace_hook_is_silent_above_level(caplog) -> None:
    logger = logging.getLogger("tests.stablelocator.quiet")
    caplog.set_level(logging.WARNING, logger=logger.name)

    logging_trace_hook(logger)("result", {"expression": "//div"})

    assert caplog.text == ""
