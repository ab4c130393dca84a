"""
Tests for structured logging context.
"""

from __future__ import annotations

import logging

import pytest

from sw.logging import current_context, get_logger, log_context


class TestLogContext:
    """Scoped context variables."""

    def test_empty_by_default(self) -> None:
        assert current_context() == {}

    def test_scoped_values_restored(self) -> None:
        with log_context(cache_version="wedding-v2", event="fetch"):
            assert current_context() == {"cache_version": "wedding-v2", "event": "fetch"}
            with log_context(client_id="client_abc"):
                assert current_context() == {
                    "cache_version": "wedding-v2",
                    "event": "fetch",
                    "client_id": "client_abc",
                }
            assert "client_id" not in current_context()
        assert current_context() == {}

    def test_restored_after_error(self) -> None:
        with pytest.raises(RuntimeError):
            with log_context(event="install"):
                raise RuntimeError("boom")
        assert current_context() == {}


class TestContextLogger:
    """Keyword fields and context end up on the record."""

    def test_fields_attached_to_record(self) -> None:
        records: list[logging.LogRecord] = []

        class Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        logger = get_logger("sw.test_logging")
        handler = Collect()
        logging.getLogger("sw").addHandler(handler)
        try:
            with log_context(event="activate"):
                logger.info("Deleted old cache", namespace="wedding-v1-static")
        finally:
            logging.getLogger("sw").removeHandler(handler)

        assert records[0].getMessage() == "Deleted old cache"
        assert records[0].extra == {  # type: ignore[attr-defined]
            "event": "activate",
            "namespace": "wedding-v1-static",
        }

    def test_name_is_namespaced(self) -> None:
        assert get_logger("cli").name == "sw.cli"
