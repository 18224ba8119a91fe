"""Tests for the structlog configuration."""

import logging
import sys

from pages_pipeline.config.logging import QUIET_LOGGERS, add_run_id_prefix, configure_logging


def test_run_id_prefix():
    event_dict = add_run_id_prefix(None, "info", {"event": "Job starting", "run_id": "abc123"})

    assert event_dict["event"] == "[abc123] Job starting"


def test_no_prefix_without_run_id():
    assert add_run_id_prefix(None, "info", {"event": "Loaded workflow"}) == {"event": "Loaded workflow"}


def test_configure_logging_writes_to_stderr():
    configure_logging()

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert handlers[0].stream is sys.stderr
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
