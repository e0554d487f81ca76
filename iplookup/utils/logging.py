"""Logging utilities with lookup ID correlation."""

import logging
import uuid
from contextvars import ContextVar

from iplookup.config import settings

# Context variable for lookup/batch correlation
lookup_id_context: ContextVar[str] = ContextVar("lookup_id", default="")


class LookupIdFilter(logging.Filter):
    """Add the current lookup ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add lookup ID from context to log record."""
        lookup_id = lookup_id_context.get()
        record.lookup_id = lookup_id or "no-lookup-id"
        return True


def setup_logging(level: str | None = None) -> None:
    """Configure console logging with lookup ID correlation."""
    level_name = (level or settings.log_level).upper()

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level_name))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(getattr(logging, level_name))

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(lookup_id)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler.setFormatter(formatter)
    handler.addFilter(LookupIdFilter())

    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def generate_lookup_id(prefix: str = "lkp") -> str:
    """Generate a unique ID for correlating one lookup or batch."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def set_lookup_id(lookup_id: str) -> None:
    """Set the lookup ID for the current context."""
    lookup_id_context.set(lookup_id)


def log_lookup(ip: str, response_time_ms: float, cached: bool = False, bogon: bool = False) -> None:
    """Log a single address lookup with full context."""
    logger = get_logger(__name__)
    logger.info(
        f"IP lookup: ip={ip or 'me'}, cached={cached}, bogon={bogon}, "
        f"response_time_ms={response_time_ms:.2f}"
    )


def log_chunk_error(chunk_index: int, chunk_size: int, error_detail: str) -> None:
    """Log a failed batch chunk; its keys are left out of the batch result."""
    logger = get_logger(__name__)
    logger.warning(
        f"Batch chunk failed: chunk={chunk_index}, keys={chunk_size}, error={error_detail}"
    )
