from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from locale_linkcheck.logging import JsonlLogger
from locale_linkcheck.utils import default_run_id, retry_with_backoff, safe_filename


def test_retry_returns_after_transient_failures() -> None:
    fn = MagicMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "done"])
    sleep = MagicMock()
    assert retry_with_backoff(fn, max_attempts=3, base_delay=0.0, sleep=sleep) == "done"
    assert fn.call_count == 3
    assert sleep.call_count == 2


def test_retry_reraises_last_error() -> None:
    fn = MagicMock(side_effect=[ConnectionError("a"), ConnectionError("b")])
    with pytest.raises(ConnectionError, match="b"):
        retry_with_backoff(fn, max_attempts=2, base_delay=0.0, sleep=MagicMock())


def test_retry_does_not_catch_other_exceptions() -> None:
    fn = MagicMock(side_effect=ValueError("nope"))
    with pytest.raises(ValueError):
        retry_with_backoff(fn, max_attempts=3, retryable_exceptions=(ConnectionError,), sleep=MagicMock())
    assert fn.call_count == 1


def test_single_attempt_calls_once() -> None:
    fn = MagicMock(side_effect=ConnectionError("x"))
    with pytest.raises(ConnectionError):
        retry_with_backoff(fn, max_attempts=1)
    assert fn.call_count == 1


def test_default_run_id_shape() -> None:
    run_id = default_run_id(prefix="linkcheck")
    assert run_id.startswith("linkcheck_")
    assert "_pid" in run_id
    assert default_run_id(prefix="linkcheck") != run_id


def test_safe_filename() -> None:
    assert safe_filename("a b/c:d") == "a_b_c_d"
    assert len(safe_filename("x" * 500)) == 120


def test_jsonl_logger_writes_files(tmp_path: Path) -> None:
    logger = JsonlLogger(base_dir=tmp_path, run_id="run1")
    logger.write_run_metadata({"a": 1})
    logger.event("link_checked", link="https://example.com/", ok=True)
    logger.failure_row({"link": "ftp://x"})

    meta = json.loads(logger.paths.run_metadata.read_text())
    assert meta["a"] == 1

    events = logger.paths.events.read_text().strip().splitlines()
    assert len(events) == 1
    e0 = json.loads(events[0])
    assert e0["event"] == "link_checked"
    assert e0["ok"] is True
    assert isinstance(e0["t"], int)

    rows = logger.paths.failures.read_text().strip().splitlines()
    assert [json.loads(r)["link"] for r in rows] == ["ftp://x"]
    assert (logger.paths.root / ".hostname").exists()
