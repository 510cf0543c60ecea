import io
import logging

import pytest

from app.logging_config import ContextFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _record(msg, **extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, msg, None, None)
    record.__dict__.update(extra)
    return record


def test_formatter_appends_extra_context():
    formatter = ContextFormatter("%(levelname)s %(message)s")

    line = formatter.format(_record("Meal analysis complete", meal_name="Soup", confidence=80))

    assert line == "INFO Meal analysis complete [confidence=80 meal_name='Soup']"


def test_formatter_without_context():
    formatter = ContextFormatter("%(message)s")

    assert formatter.format(_record("plain")) == "plain"


def test_configure_logging_writes_to_stream(restore_root_logger):
    stream = io.StringIO()

    configure_logging("debug", stream=stream)
    logging.getLogger("app.meal_analyzer").info("Calling OpenAI API", extra={"model": "gpt-4o"})

    output = stream.getvalue()
    assert "[INFO] app.meal_analyzer: Calling OpenAI API [model='gpt-4o']" in output
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("openai").level == logging.WARNING


def test_configure_logging_twice_keeps_one_handler(restore_root_logger):
    configure_logging()
    configure_logging()

    assert len(logging.getLogger().handlers) == 1
