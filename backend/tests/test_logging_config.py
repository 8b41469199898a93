"""JSON log formatting."""

import json
import logging

from synprod.services.logging_config import JSONFormatter


def _record(**extra):
    record = logging.LogRecord("synprod-export", logging.INFO, __file__, 12, "rendered %s", ("pdf",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_base_fields():
    line = json.loads(JSONFormatter().format(_record()))
    assert line["logger"] == "synprod-export"
    assert line["level"] == "INFO"
    assert line["message"] == "rendered pdf"
    assert "timestamp" in line


def test_extras_copied_when_present():
    line = json.loads(JSONFormatter().format(_record(product_id=42, duration_ms=3.5)))
    assert line["product_id"] == 42
    assert line["duration_ms"] == 3.5
    assert "request_id" not in line
