import io
import json

from pingprobe.logger import configure_logging, scoped_logger


def test_records_are_json_lines():
    stream = io.StringIO()
    configure_logging("DEBUG", stream=stream, force=True)

    scoped_logger("ping-command").error("Successful stdout is empty.", extra={"fields": {"target": "8.8.8.8"}})

    entry = json.loads(stream.getvalue().splitlines()[-1])
    assert entry["level"] == "error"
    assert entry["scope"] == "pingprobe.ping-command"
    assert entry["msg"] == "Successful stdout is empty."
    assert entry["fields"] == {"target": "8.8.8.8"}
    assert entry["ts"].endswith("Z")


def test_exceptions_are_included():
    stream = io.StringIO()
    configure_logging("INFO", stream=stream, force=True)

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        scoped_logger("tcp-ping").exception("Unexpected failure.")

    entry = json.loads(stream.getvalue().splitlines()[-1])
    assert "RuntimeError: boom" in entry["exc"]


def test_level_filters_records():
    stream = io.StringIO()
    configure_logging("WARNING", stream=stream, force=True)

    scoped_logger("ping-command").info("hidden")

    assert stream.getvalue() == ""


def test_reconfiguring_keeps_a_single_handler():
    stream = io.StringIO()
    logger = configure_logging("INFO", stream=stream, force=True)
    configure_logging("DEBUG")

    marked = [h for h in logger.handlers if getattr(h, "_pingprobe_json", False)]
    assert len(marked) == 1
    assert marked[0].stream is stream
