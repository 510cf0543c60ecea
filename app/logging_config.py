"""
Centralised logging configuration.

Call `configure_logging()` once at startup (scripts do this in `main()`).
Each module should then use:

    import logging
    logger = logging.getLogger(__name__)

Context goes in `extra={...}` rather than being formatted into the message;
the formatter appends it as `key=value` pairs.
"""

import logging
import sys
from typing import TextIO

# Attributes every LogRecord has; anything else came from `extra`
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine")


class ContextFormatter(logging.Formatter):
    """Formatter that renders `extra` context after the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        if not context:
            return line
        pairs = " ".join(f"{k}={v!r}" for k, v in sorted(context.items()))
        # keep tracebacks last
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def configure_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger to write context-aware lines to ``stream``."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        ContextFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Replace rather than stack handlers when called twice
    root.handlers = [handler]

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
