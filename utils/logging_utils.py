"""
Logging setup shared by the viewing-conditions service.

The server entrypoint calls ``setup_logging`` once; every module grabs a tagged
logger at import time:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="providers/n2yo")
    logger.info("Fetched passes", extra={"passes": 3})

Each record is stamped with ``job_name`` and ``tag`` so provider, cache and
API lines can be told apart in one stream, and credentials that end up in
messages (N2YO ``apiKey`` query strings, Redis passwords) are masked before
any handler formats them.
"""

from __future__ import annotations

import logging
import logging.config
import re
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


# Lines logged before setup_logging (settings import, uvicorn boot) still get a timestamp.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(job_name)s/%(tag)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

SECRET_KEY_MARKERS = ("key", "token", "secret", "pass", "pwd")
MASK = "***"

# key=value pairs whose key looks like a credential, inside free text.
_SECRET_PAIR = re.compile(
    r"(?P<key>[\w-]*(?:" + "|".join(SECRET_KEY_MARKERS) + r")[\w-]*)=(?P<value>[^&\s'\"]+)",
    re.IGNORECASE,
)
# user:password@ inside a URL.
_URL_PASSWORD = re.compile(r"(?P<scheme>\w+://)(?P<user>[^:/@\s]*):(?P<password>[^@/\s]+)@")

_configured = False


def redact_secrets(text: str) -> str:
    """Mask credential-looking query values and URL passwords inside ``text``."""
    text = _SECRET_PAIR.sub(lambda m: f"{m.group('key')}={MASK}", text)
    return _URL_PASSWORD.sub(lambda m: f"{m.group('scheme')}{m.group('user')}:{MASK}@", text)


class ServiceContextFilter(logging.Filter):
    """
    Stamp ``job_name`` and ``tag`` on records and redact secrets in messages.

    Records from ``get_tagged_logger`` already carry a tag; third-party
    loggers (uvicorn, urllib3, redis) get the last segment of their name.
    """

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self.job_name = job_name or "astroview"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not getattr(record, "tag", None):
            record.tag = record.name.rsplit(".", 1)[-1] if record.name else "-"
        if not getattr(record, "job_name", None):
            record.job_name = self.job_name
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg, record.args = redacted, None
        return True


class BelowLevelFilter(logging.Filter):
    """Drop records at or above ``level`` so warnings only reach stderr."""

    def __init__(self, level: int | str = logging.WARNING) -> None:
        super().__init__()
        self.level = level if isinstance(level, int) else logging.getLevelName(level.upper())

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno < self.level


def _stream_handler(stream: str, level: str, filters: list[str]) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "stream": f"ext://sys.{stream}",
        "level": level,
        "formatter": "service",
        "filters": filters,
    }


def build_logging_config(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    log_format: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> Mapping[str, Any]:
    """Return the ``dictConfig`` mapping: INFO and below on stdout, WARNING and up on stderr."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": ServiceContextFilter, "job_name": job_name},
            "below_warning": {"()": BelowLevelFilter, "level": "WARNING"},
        },
        "formatters": {"service": {"format": log_format, "datefmt": date_format}},
        "handlers": {
            "stdout": _stream_handler("stdout", "DEBUG", ["context", "below_warning"]),
            "stderr": _stream_handler("stderr", "WARNING", ["context"]),
        },
        # urllib3 logs full request URLs at DEBUG, query strings included.
        "loggers": {"urllib3": {"level": "INFO"}},
        "root": {"level": level, "handlers": ["stdout", "stderr"]},
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    log_format: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
    override_existing: bool = False,
) -> None:
    """Apply the service logging configuration; later calls are no-ops unless ``override_existing``."""
    global _configured

    if _configured and not override_existing:
        return
    logging.config.dictConfig(
        build_logging_config(level=level, job_name=job_name, log_format=log_format, date_format=date_format)
    )
    _configured = True


def get_tagged_logger(name: str, *, tag: Optional[str] = None) -> logging.LoggerAdapter:
    """LoggerAdapter for ``name`` whose records carry ``tag`` (default: last dotted segment)."""
    return logging.LoggerAdapter(logging.getLogger(name), {"tag": tag or name.rsplit(".", 1)[-1]})


def mask_url_secrets(url: str) -> str:
    """Return ``url`` with userinfo and credential-looking query values masked.

    Examples
    --------
    - redis://:hunter2@cache:6379/0 -> redis://:***@cache:6379/0
    - https://api.n2yo.com/rest/v1/satellite/visualpasses/25544/?apiKey=ABC
      -> https://api.n2yo.com/rest/v1/satellite/visualpasses/25544/?apiKey=%2A%2A%2A
    - redis://localhost:6379/0 -> unchanged
    """
    parts = urlsplit(url)
    if not parts.scheme and not parts.netloc:
        return url

    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    userinfo = ""
    if parts.username:
        userinfo = MASK
    if parts.password is not None:
        userinfo += f":{MASK}"
    netloc = f"{userinfo}@{host}" if userinfo else host

    query = urlencode(
        [
            (key, MASK if any(marker in key.lower() for marker in SECRET_KEY_MARKERS) else value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
        ]
    )
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))
