import logging
from io import StringIO

import pytest

from vault_pricer.logger import (
    NOISY_LOGGERS,
    TRACE,
    ColoredFormatter,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logging.basicConfig(level=logging.WARNING, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.mark.parametrize(
    "name,expected",
    [("trace", TRACE), ("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("loud", logging.INFO)],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_setup_logging_writes_plain_text_to_non_tty():
    stream = StringIO()
    setup_logging("DEBUG", stream=stream)

    logging.getLogger("vault_pricer.test").debug("resolved %s", "0xabc")

    output = stream.getvalue()
    assert "DEBUG - resolved 0xabc" in output
    assert "\033[" not in output


def test_noisy_loggers_stay_quiet_at_debug():
    setup_logging("DEBUG", stream=StringIO())

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_trace_shows_noisy_loggers():
    setup_logging("TRACE", stream=StringIO())

    assert logging.getLogger().level == TRACE
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == TRACE


def test_colored_formatter_restores_levelname():
    formatter = ColoredFormatter(fmt="%(levelname)s %(message)s", use_color=True)
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)

    assert formatter.format(record) == "\033[33m\033[1mWARNING\033[0m careful"
    assert record.levelname == "WARNING"
