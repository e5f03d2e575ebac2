"""Logging configuration and utilities."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from ..config import Settings

# Client libraries whose request-level chatter drowns out invocation logs.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "github")

FILE_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def _stream_handlers(json_output: bool) -> List[logging.Handler]:
    """JSON lines go to stdout for collectors; text goes to a rich console on stderr."""
    if json_output:
        return [logging.StreamHandler(sys.stdout)]
    return [
        RichHandler(
            console=Console(stderr=True),
            show_path=True,
            markup=False,
            rich_tracebacks=True
        )
    ]


def _file_handler(log_file: str, level: int, json_output: bool) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s" if json_output else FILE_TEXT_FORMAT))
    return handler


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Setup structured logging with rich formatting."""
    if settings is None:
        from ..config import get_settings
        settings = get_settings()

    json_output = settings.log_format == "json"
    level = getattr(logging, settings.log_level.value)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _renderer(json_output),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers = _stream_handlers(json_output)
    if settings.log_file:
        handlers.append(_file_handler(settings.log_file, level, json_output))
    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=settings.log_level.value,
        log_format=settings.log_format,
        log_file=settings.log_file
    )
