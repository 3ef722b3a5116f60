"""Tests for structured stdout logging and context propagation."""

from __future__ import annotations

import asyncio
import json
import logging

from packages.regbot_shared.logging import (
    bind_context,
    clear_context,
    get_context,
    log_context,
)
from packages.regbot_shared.logging.config import (
    ContextFilter,
    JsonFormatter,
    PlainFormatter,
)


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="regbot.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_log_context_binds_and_restores() -> None:
    clear_context()
    bind_context(service="regbot", ignored=None)

    with log_context({"request_id": "req-1", "user_id": 1001}):
        assert get_context().get("request_id") == "req-1"
        assert get_context() == {
            "service": "regbot",
            "request_id": "req-1",
            "user_id": "1001",
        }

    assert get_context().get("request_id") is None
    assert get_context() == {"service": "regbot"}
    clear_context("service")
    assert get_context() == {}


def test_concurrent_tasks_do_not_share_request_ids() -> None:
    clear_context()

    async def _handle(request_id: str) -> str | None:
        with log_context({"request_id": request_id}):
            await asyncio.sleep(0)
            return get_context().get("request_id")

    async def _run() -> list[str | None]:
        return list(await asyncio.gather(_handle("a"), _handle("b")))

    assert asyncio.run(_run()) == ["a", "b"]


def test_json_formatter_merges_context_and_record_fields() -> None:
    clear_context()
    record = _record("audit %s", fields={"attempts": 2, "dm_error": None})
    record.args = ("complete",)

    with log_context({"request_id": "req-7"}):
        ContextFilter().filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "audit complete"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "regbot.test"
    assert payload["request_id"] == "req-7"
    assert payload["attempts"] == 2
    assert "dm_error" not in payload
    assert "timestamp" in payload


def test_plain_formatter_appends_sorted_context() -> None:
    clear_context()
    record = _record()
    with log_context({"user_id": "9", "request_id": "req-1"}):
        ContextFilter().filter(record)

    line = PlainFormatter().format(record)

    assert line.endswith("regbot.test hello request_id=req-1 user_id=9")
