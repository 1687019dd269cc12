"""Structured logging with structlog.

Log records go to stderr so they never interleave with command output that is
being piped or redirected. Until ``configure_logging`` runs, events are routed
through the stdlib ``seashell`` logger, so an unconfigured process only sees
warnings and errors, on stderr, from logging's last-resort handler.
"""

import logging
import sys

import structlog

from seashell.config import get_settings

_configured = False


def configure_default_logging() -> None:
    """Route structlog through stdlib logging until the shell configures it."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def configure_logging(force: bool = False) -> None:
    """Configure structlog for the shell."""
    global _configured
    if _configured and not force:
        return
    settings = get_settings()

    handler = logging.StreamHandler(sys.stderr)
    if settings.log_format == "json":
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        )
    else:
        formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        )
    handler.setFormatter(formatter)

    root = logging.getLogger("seashell")
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, settings.log_level))
    root.propagate = False

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)


# structlog's own defaults print every level to stdout
if not structlog.is_configured():
    configure_default_logging()
