"""structlog setup shared by the bot, discord.py and the HTTP/LLM clients."""

import json
import logging
import re
import sys
from typing import Any

import structlog

_SECRET_RE = re.compile(
    "|".join((
        r"AIza[0-9A-Za-z_-]{20,}",                          # Gemini API keys
        r"[MNO][A-Za-z\d_-]{23,}\.[\w-]{6}\.[\w-]{27,}",    # Discord bot tokens
        r"sk-[A-Za-z0-9_-]{10,}",
        r"Bearer\s+[A-Za-z0-9_\-.]{10,}",
    ))
)

# Third-party loggers that share our handler, with their floor level
_LIBRARY_LEVELS = {
    "discord": logging.WARNING,
    "httpx": logging.WARNING,
    "LiteLLM": logging.WARNING,
}


def mask_secret(value: str) -> str:
    """Keep the first and last four characters of *value*.

    >>> mask_secret("AIzaSyA1234567890abcdef")
    'AIza****cdef'
    """
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}****{value[-4:]}"


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return _SECRET_RE.sub(lambda m: mask_secret(m.group(0)), value)
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(v) for v in value)
    return value


def _redact_event(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Processor: mask anything token-shaped, including inside nested fields."""
    return {key: _redact_value(val) for key, val in event_dict.items()}


def setup_logging(json_output: bool = True, level: str = "INFO") -> None:
    """Route chronicler and library logs through one stderr handler.

    Records from stdlib loggers (discord.py, httpx, LiteLLM) go through the
    same timestamp and redaction chain as our own events.
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        renderer = structlog.processors.JSONRenderer(
            serializer=lambda obj, **kw: json.dumps(obj, ensure_ascii=False, **kw)
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _redact_event,
            renderer,
        ],
    ))

    levels = {"chronicler": getattr(logging, level.upper()), **_LIBRARY_LEVELS}
    for name, floor in levels.items():
        lib_logger = logging.getLogger(name)
        lib_logger.handlers.clear()
        lib_logger.addHandler(handler)
        lib_logger.setLevel(floor)
        lib_logger.propagate = False


def get_logger(name: str = "chronicler") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
