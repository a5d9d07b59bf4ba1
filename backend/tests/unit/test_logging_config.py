"""
Tests for the structured logging formatters and setup.
"""

import json
import logging

import pytest

from clinic.core.logging_config import (
    ConsoleFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)

pytestmark = pytest.mark.logging


def _record(msg="Stock movement recorded", level=logging.INFO, context=None):
    record = logging.LogRecord(
        name="clinic.services.inventory_service",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    if context is not None:
        record.context = context
    return record


def test_json_formatter_includes_context():
    payload = json.loads(
        JSONFormatter().format(_record(context={"inventory_id": "abc", "quantity": 4}))
    )

    assert payload["level"] == "INFO"
    assert payload["message"] == "Stock movement recorded"
    assert payload["logger"] == "clinic.services.inventory_service"
    assert payload["context"] == {"inventory_id": "abc", "quantity": 4}


def test_console_formatter_leaves_record_untouched():
    record = _record(level=logging.WARNING, context={"alert_id": "a1"})

    line = ConsoleFormatter("%(levelname)s | %(message)s").format(record)

    assert "Stock movement recorded" in line
    assert '"alert_id": "a1"' in line
    assert record.levelname == "WARNING"


def test_setup_logging_replaces_root_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(log_level="WARNING", use_json_format=True)

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING
        assert get_logger("clinic").level == logging.WARNING
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
