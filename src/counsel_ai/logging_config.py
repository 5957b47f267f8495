"""structlog + stdlib logging setup for the worker, CLI and API.

Model calls, cache traffic and sweeps log through ``structlog``; SQLAlchemy,
httpx and the genai SDK log through stdlib ``logging``. Both end up in one
stdout stream, rendered as JSON lines or as coloured console output.
"""

import logging
import sys

import structlog

# Per-request chatter from the provider SDK and its transport
_LIBRARY_LOGGERS = ("google_genai", "httpx", "httpcore")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    json_output: bool = True,
    log_level: str = "INFO",
    library_level: str = "WARNING",
) -> None:
    """Route structlog and stdlib records through one formatter.

    Args:
        json_output: Render JSON lines; ``False`` selects structlog's
            console renderer for local runs.
        log_level: Level for the root logger (application events).
        library_level: Level for the provider SDK and HTTP client loggers.
    """
    shared = _shared_processors()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level.upper())

    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level.upper())
