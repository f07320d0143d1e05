import io
import json
import logging
from typing import Iterator

import pytest

from entropy import logging as elog


def _capture(json_format: bool) -> io.StringIO:
    stream = io.StringIO()
    elog.configure(json=json_format, level="DEBUG", stream=stream)
    return stream


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    elog.clear_context()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_carry_phase_context_and_extras() -> None:
    stream = _capture(True)
    log = elog.get_logger("entropy.test")

    with elog.phase_scope("verify", source="bitcoin"):
        log.info("entropy : verified", extra={"hash": b"\x01\x02"})
    log.info("outside")

    first, second = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert first["phase"] == "verify"
    assert first["source"] == "bitcoin"
    assert first["hash"] == "0102"
    assert len(first["trace_id"]) == 12
    assert "phase" not in second


def test_bind_unbind_and_clear() -> None:
    elog.clear_context()
    elog.bind(phase="index", extra_field=1)
    assert elog.context() == {"phase": "index", "extra_field": 1}
    elog.unbind("extra_field")
    assert elog.context() == {"phase": "index"}
    elog.clear_context()
    assert elog.context() == {}


def test_text_format_is_single_line() -> None:
    stream = _capture(False)
    with elog.phase_scope("generate"):
        elog.get_logger().warning("slow")
    line = stream.getvalue().strip()
    assert "| WARNING | entropy | trace_id=" in line
    assert "phase=generate" in line
    assert line.endswith("| slow")


def test_log_format_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ENTROPY_LOG_FORMAT", "json")
    stream = io.StringIO()
    elog.configure(level="INFO", stream=stream)
    elog.get_logger().info("hello")
    assert json.loads(stream.getvalue())["msg"] == "hello"
