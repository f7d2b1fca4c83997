from __future__ import annotations

import logging

import pytest

from yomu.logging_utils import (
    Utf8AccessFormatter,
    build_uvicorn_log_config,
    debug_log,
    is_debug_logging,
    set_debug_logging,
)


@pytest.fixture(autouse=True)
def _reset_debug():
    yield
    set_debug_logging(False)


def test_debug_log_is_silent_by_default(capsys) -> None:
    set_debug_logging(False)
    debug_log("hidden")
    assert capsys.readouterr().out == ""


def test_debug_log_prints_when_enabled(capsys) -> None:
    set_debug_logging(True)
    assert is_debug_logging()
    debug_log("dropped 2 record(s)")
    assert capsys.readouterr().out == "[yomu debug] dropped 2 record(s)\n"


def test_access_formatter_decodes_query() -> None:
    formatter = Utf8AccessFormatter('%(client_addr)s - "%(request_line)s" %(status_code)s', use_colors=False)
    record = logging.LogRecord(
        "uvicorn.access",
        logging.INFO,
        __file__,
        1,
        '%s - "%s %s HTTP/%s" %d',
        ("127.0.0.1:5000", "GET", "/api/lookup?q=%E7%8C%AB", "1.1", 200),
        None,
    )
    line = formatter.format(record)
    assert "/api/lookup?q=猫" in line


def test_uvicorn_config_uses_utf8_formatter() -> None:
    config = build_uvicorn_log_config()
    assert config["formatters"]["access"]["()"] == "yomu.logging_utils.Utf8AccessFormatter"
