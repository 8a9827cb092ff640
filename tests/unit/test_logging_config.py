"""Unit tests for JSON log formatting."""

import json
import logging
import sys

from pagerender.core.logging_config import StructuredFormatter


def _record(**extra):
    record = logging.LogRecord(
        name="pagerender.orchestrator",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Page %s stored",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_json_with_page_context():
    payload = json.loads(
        StructuredFormatter().format(
            _record(version_id="ver_1", page_number=3, stage_timings={"render": 12.5})
        )
    )

    assert payload["message"] == "Page 3 stored"
    assert payload["level"] == "INFO"
    assert payload["version_id"] == "ver_1"
    assert payload["page_number"] == 3
    assert payload["stage_timings"] == {"render": 12.5}
    assert payload["timestamp"].endswith("Z")


def test_unknown_extras_are_not_emitted():
    payload = json.loads(StructuredFormatter().format(_record(password="hunter2")))

    assert "password" not in payload


def test_exception_details():
    try:
        raise ValueError("broken xref")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["exception"]["type"] == "ValueError"
    assert payload["exception"]["message"] == "broken xref"
