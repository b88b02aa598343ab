"""Logging setup and the injected application logger.

Learn: structlog does the formatting (timestamps, request ids bound via
contextvars, console vs JSON output). AppLogger sits on top with the six
severities the app uses, most severe first:

    fatal > error > warning > info > http > debug

structlog has no "http" or "fatal" method, so AppLogger filters by its own
threshold and maps each severity onto the closest structlog method, tagging
the record with `severity=<name>`. One AppLogger is built in the container
and handed to every component.
"""

import logging

import structlog

SEVERITIES = {
    "fatal": 0,
    "error": 1,
    "warning": 2,
    "info": 3,
    "http": 4,
    "debug": 5,
}

# severity → structlog method
_METHODS = {
    "fatal": "critical",
    "error": "error",
    "warning": "warning",
    "info": "info",
    "http": "info",
    "debug": "debug",
}

_configured = False


def configure_logging(json_output: bool = False) -> None:
    """Configure structlog once per process."""
    global _configured
    if _configured:
        return

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        cache_logger_on_first_use=False,
    )
    _configured = True


class AppLogger:
    """Severity-aware logger passed to every component."""

    def __init__(self, name: str = "mercadito", level: str = "info", **context):
        if level not in SEVERITIES:
            raise ValueError(f"Unknown log level: {level}")
        self.name = name
        self.level = level
        self._threshold = SEVERITIES[level]
        self._context = context

    def bind(self, **context) -> "AppLogger":
        return AppLogger(self.name, self.level, **{**self._context, **context})

    def enabled(self, severity: str) -> bool:
        return SEVERITIES[severity] <= self._threshold

    def _emit(self, severity: str, event: str, **kw) -> None:
        if not self.enabled(severity):
            return
        log = structlog.get_logger(self.name)
        getattr(log, _METHODS[severity])(
            event, severity=severity, **self._context, **kw
        )

    def fatal(self, event: str, **kw) -> None:
        self._emit("fatal", event, **kw)

    def error(self, event: str, **kw) -> None:
        self._emit("error", event, **kw)

    def warning(self, event: str, **kw) -> None:
        self._emit("warning", event, **kw)

    def info(self, event: str, **kw) -> None:
        self._emit("info", event, **kw)

    def http(self, event: str, **kw) -> None:
        self._emit("http", event, **kw)

    def debug(self, event: str, **kw) -> None:
        self._emit("debug", event, **kw)
