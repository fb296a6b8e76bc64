# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging setup shared by the generator and by generated servers.

Records always go to stderr.  A stdio server owns stdout for protocol frames,
so nothing in this package may print diagnostics there.

Environment knobs:

* ``DOCMCP_LOG_LEVEL`` picks the level when none is passed explicitly.
* ``DOCMCP_LOG_JSON`` switches to one JSON object per line.
* ``NO_COLOR`` disables ANSI colors in the plain-text format.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
import os
import sys
from typing import Any, ClassVar, Final


RESET: Final[str] = "\033[0m"

DEBUG_COLOR: Final[str] = "\033[36m"
INFO_COLOR: Final[str] = "\033[32m"
WARNING_COLOR: Final[str] = "\033[33m"
ERROR_COLOR: Final[str] = "\033[1;31m"
CRITICAL_COLOR: Final[str] = "\033[1;35m"
NAME_COLOR: Final[str] = "\033[94m"

DEFAULT_LOGGER_NAME: Final[str] = "docmcp"
ENV_LOG_LEVEL: Final[str] = "DOCMCP_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "DOCMCP_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})

_STANDARD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName", "context"}


class ColoredFormatter(logging.Formatter):
    """Plain-text formatter that tints the level and logger name."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": DEBUG_COLOR,
        "INFO": INFO_COLOR,
        "WARNING": WARNING_COLOR,
        "ERROR": ERROR_COLOR,
        "CRITICAL": CRITICAL_COLOR,
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname, name = record.levelname, record.name
        record.levelname = f"{self.LEVEL_COLORS.get(levelname, '')}{levelname}{RESET}"
        record.name = f"{NAME_COLOR}{name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname, record.name = levelname, name


class DocMCPHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler installed by :func:`setup_logger`, bound to stderr."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)


class StructuredJSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Attributes passed through ``extra=`` end up under ``context``; a
    ``context`` dict passed that way is merged in as-is.
    """

    def __init__(self, serializer: JsonSerializer | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer or _dump_json

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        context: dict[str, Any] = {}
        supplied = getattr(record, "context", None)
        if isinstance(supplied, dict):
            context.update(supplied)
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                context.setdefault(key, value)
        if context:
            payload["context"] = context

        return self._serializer(payload)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)


def _env_flag(key: str) -> bool:
    value = os.getenv(key)
    return value is not None and value.strip().lower() in _TRUTHY


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _installed_handlers(root: logging.Logger) -> list[DocMCPHandler]:
    return [handler for handler in root.handlers if isinstance(handler, DocMCPHandler)]


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    fmt: str | None = None,
    datefmt: str | None = DEFAULT_DATEFMT,
    force: bool = False,
) -> None:
    """Attach the package handler to the root logger.

    Args:
        level: Log level. Falls back to ``DOCMCP_LOG_LEVEL``, then ``INFO``.
        use_json: Emit JSON lines. Falls back to ``DOCMCP_LOG_JSON``.
        use_color: Colorize plain-text output. Defaults to on unless
            ``NO_COLOR`` is set or JSON output is enabled.
        json_serializer: Replacement for :func:`json.dumps` in JSON mode.
        fmt: Format string for plain-text output.
        datefmt: Timestamp format.
        force: Replace a previously installed handler instead of keeping it.
    """
    root = logging.getLogger()
    existing = _installed_handlers(root)
    if existing and not force:
        return
    for handler in existing:
        root.removeHandler(handler)
        handler.close()

    resolved_level = _resolve_level(level)
    root.setLevel(resolved_level)

    json_mode = _env_flag(ENV_LOG_JSON) if use_json is None else use_json
    if use_color is None:
        use_color = not json_mode and not os.getenv(ENV_NO_COLOR)

    formatter: logging.Formatter
    if json_mode:
        formatter = StructuredJSONFormatter(json_serializer, datefmt=datefmt)
    elif use_color:
        formatter = ColoredFormatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)
    else:
        formatter = logging.Formatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)

    handler = DocMCPHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger, installing the default handler on first use."""
    if not _installed_handlers(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "DocMCPHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
