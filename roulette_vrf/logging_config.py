"""
Log setup for bet runs.

Everything the run logs goes to stderr so stdout only carries the bet
result the CLI prints. An interactive terminal (or DEBUG) gets the
console renderer; a redirected stream gets one JSON object per line.
"""

import logging
import sys
from typing import IO, List, Optional

import structlog

from .config import settings


QUIET_LOGGERS = ("httpcore", "httpx")


def _run_processors() -> List[structlog.types.Processor]:
    return [
        # transaction_hash is bound per bet run
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def wants_console(level: int, stream: IO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return level == logging.DEBUG or bool(isatty and isatty())


def setup_logging(log_level: Optional[str] = None, stream: Optional[IO] = None) -> None:
    """Route structlog and stdlib records from a bet run to ``stream``.

    Args:
        log_level: Override log level (default: from settings.log_level)
        stream: Destination (default: stderr)
    """
    stream = stream or sys.stderr
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    processors = _run_processors()
    if wants_console(level, stream):
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # one line per receipt poll is enough
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
