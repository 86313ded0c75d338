"""
Logging setup shared by the weather fetcher and its entrypoints.

Entry points call ``setup_logging`` once:

    from epd_utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="epd_weather_fetch")

Modules ask for a tagged adapter instead of a bare logger:

    from epd_utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="data_sources/open_meteo_client")
    logger.info("Fetching forecast", extra={"attempt": 1})

Every record then carries ``job_name`` and ``tag`` so the formatter can show
which fetch run and which component produced it.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict, Mapping, Optional


# Records emitted before setup_logging() still get a timestamp and level.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_PAYLOAD_PREVIEW_CHARS = 200

_CONFIGURED: bool = False


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below ``max_level`` (keeps stdout free of errors)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Give records without a ``tag`` one derived from the logger name.

    Records coming through ``get_tagged_logger`` already have a tag; plain
    ``logging.getLogger`` users (e.g. requests, urllib3) get the last dotted
    segment of their logger name instead.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp every record with the process-wide ``job_name`` ("-" if unset)."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


def _stream_handler(stream: str, level: str, filters: list) -> Dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "formatter": "standard",
        "filters": filters,
        "level": level,
        "stream": f"ext://sys.{stream}",
    }


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Return a ``dictConfig`` mapping with split stdout/stderr handlers.

    DEBUG and INFO go to stdout, WARNING and above to stderr, so a cron
    wrapper can mail only the failures of a fetch run.

    Parameters
    ----------
    level : str | int
        Root logger level, e.g. "INFO" or ``logging.DEBUG``.
    log_format : str
        Format string for the shared formatter.
    date_format : str
        ``datefmt`` for the shared formatter.
    job_name : str, optional
        Stamped onto every record as ``job_name``; "-" when omitted.

    Returns
    -------
    Mapping[str, Any]
        A mapping ready for ``logging.config.dictConfig``.
    """
    enrich = ["ensure_tag", "job_name"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {"()": MaxLevelFilter, "max_level": logging.INFO},
        },
        "formatters": {"standard": {"format": log_format, "datefmt": date_format}},
        "handlers": {
            "stdout": _stream_handler("stdout", "DEBUG", enrich + ["stdout_max_info"]),
            "stderr": _stream_handler("stderr", "WARNING", enrich),
        },
        "root": {"level": level, "handlers": ["stdout", "stderr"]},
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Apply the logging configuration once per process.

    Repeated calls are ignored unless ``override_existing`` is set, so library
    code and the entrypoint can both call it safely.

    Parameters
    ----------
    level : str | int
        Root logger level.
    log_format : str
        Format string for both handlers.
    date_format : str
        Timestamp format for both handlers.
    job_name : str, optional
        Identifier of the fetch run, added to every record.
    override_existing : bool
        Reapply the configuration even if it was already applied.

    Returns
    -------
    None
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(
        build_logging_config(
            level=level,
            log_format=log_format,
            date_format=date_format,
            job_name=job_name,
        )
    )
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a ``LoggerAdapter`` that adds ``tag`` to every record.

    Parameters
    ----------
    name : str
        Logger name, usually ``__name__``.
    tag : str, optional
        Component label such as "data_sources/open_meteo_client". Defaults to
        the last dotted segment of ``name``.

    Returns
    -------
    logging.LoggerAdapter
        Adapter whose records carry ``tag`` in their ``extra``.
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


def payload_preview(payload: Optional[str], limit: int = DEFAULT_PAYLOAD_PREVIEW_CHARS) -> str:
    """Return the head of a response body for debug logs.

    Examples
    --------
    - '{"current": {...}}' (short) -> unchanged
    - a 5 kB body -> first ``limit`` characters followed by '...'
    - None -> ''
    """
    if not payload:
        return ""
    if len(payload) <= limit:
        return payload
    return f"{payload[:limit]}..."
