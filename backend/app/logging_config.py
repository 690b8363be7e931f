from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog
from structlog.typing import EventDict, Processor

from backend.app.config import AppSettings

ROOT_LOGGER_NAME = "video_gateway"
LOG_FILE_NAME = "video-gateway.log"
SERVICE_NAME = "video-gateway"
# `extra=` keys lifted from stdlib records into the rendered event.
GATEWAY_CONTEXT_KEYS: tuple[str, ...] = (
    "video_id",
    "gateway_action",
    "error_kind",
    "upstream_status",
    "credential_generation",
)


def configure_application_logging(settings: AppSettings) -> Path:
    log_dir = settings.resolved_log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    _configure_structlog()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_stream = sys.stdout
    logger.addHandler(
        _build_handler(
            logging.StreamHandler(stream=console_stream),
            level=_resolve_log_level(settings.log_level),
            renderer=structlog.dev.ConsoleRenderer(
                colors=_stream_supports_color(console_stream),
            ),
        )
    )
    logger.addHandler(
        _build_handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            level=logging.DEBUG,
            renderer=structlog.processors.JSONRenderer(sort_keys=True),
            record_metadata=True,
        )
    )

    logger.info(
        "logging configured console_level=%s path=%s",
        settings.log_level.upper(),
        log_file,
    )
    return log_file


def _resolve_log_level(raw_level: str) -> int:
    resolved = getattr(logging, raw_level.strip().upper(), None)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _build_handler(
    handler: logging.Handler,
    *,
    level: int,
    renderer: Processor,
    record_metadata: bool = False,
) -> logging.Handler:
    processors: list[Processor] = []
    if record_metadata:
        processors.append(_add_record_location)
    processors.append(structlog.stdlib.ProcessorFormatter.remove_processors_meta)
    if record_metadata:
        processors.extend(
            [structlog.processors.StackInfoRenderer(), structlog.processors.format_exc_info]
        )
    processors.append(renderer)

    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.ExtraAdder(allow=GATEWAY_CONTEXT_KEYS),
                _add_service_name,
                structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            ],
            processors=processors,
        )
    )
    return handler


def _add_service_name(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _add_record_location(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        event_dict["pathname"] = record.pathname
        event_dict["lineno"] = record.lineno
        event_dict["func_name"] = record.funcName
    return event_dict


def _stream_supports_color(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except Exception:
            return False
    return False
