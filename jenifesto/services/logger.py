"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from jenifesto.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# Libraries whose stdlib loggers would drown out the pipeline's own records
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sse_starlette.sse")

_configured_dir: Optional[Path] = None


def setup_logging(log_dir: Optional[str | Path] = None) -> Path:
    """Install the console and daily file sinks. Repeat calls for the same directory are no-ops."""
    global _configured_dir
    target = Path(log_dir or settings.log_dir)
    if _configured_dir == target:
        return target

    target.mkdir(parents=True, exist_ok=True)
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.app_log_level.upper(),
        colorize=True,
    )
    logger.add(
        target / "jenifesto_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention=f"{settings.log_retention_days} days",
        compression="zip",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())

    _configured_dir = target
    return target


setup_logging()


def _record(**fields) -> dict:
    return {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}


def log_source_call(
    source: str,
    operation: str,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log a single source adapter call made during a fan-out."""
    call_data = _record(
        source=source,
        operation=operation,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )
    if error:
        logger.warning(f"SOURCE_CALL_FAILED: {call_data}")
    elif status == "not_found":
        logger.info(f"SOURCE_CALL_EMPTY: {call_data}")
    else:
        logger.info(f"SOURCE_CALL: {call_data}")


def log_cache_operation(
    tier: str,
    key: str,
    status: str,
    error: Optional[str] = None,
) -> None:
    """Log a cache lookup or store for a tier. Degraded access is a warning."""
    op_data = _record(tier=tier, key=key, status=status, error=error)
    if error:
        logger.warning(f"CACHE_OPERATION_DEGRADED: {op_data}")
    else:
        logger.debug(f"CACHE_OPERATION: {op_data}")


def log_stage_transition(version: int, stage: str, primary_id: Optional[str] = None) -> None:
    logger.debug(f"STAGE: {_record(version=version, stage=stage, primary_id=primary_id)}")


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a generic event."""
    logger.info(f"EVENT: {_record(event_type=event_type, message=message, **kwargs)}")
