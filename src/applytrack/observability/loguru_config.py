"""Loguru configuration for applytrack.

Provides:
- Console logging plus optional structured JSON files per component
- Component-bound loggers (tracker, storage, applications, cli)
- A timing context for measuring dashboard computation
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "timing_context",
]

COMPONENTS = ("tracker", "storage", "applications", "cli")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "30 days",
    enable_console: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for JSON log files; no files are written when None
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "10 MB", "1 day")
    retention
        Log retention policy (e.g., "30 days")
    enable_console
        Enable stderr output

    Example
    -------
    >>> configure_loguru(log_dir=Path("logs"), level="DEBUG")
    """
    logger.remove()

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
            filter=_with_component,
        )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "applytrack.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            serialize=True,
            filter=_with_component,
        )

        for component in COMPONENTS:
            logger.add(
                log_dir / f"{component}.jsonl",
                format="{message}",
                level=level,
                rotation=rotation,
                retention=retention,
                serialize=True,
                filter=lambda record, comp=component: record["extra"].get("component") == comp,
            )

    get_logger("cli").debug("Loguru configured", log_dir=str(log_dir) if log_dir else None, level=level)


def _with_component(record: dict[str, Any]) -> bool:
    # Records logged through the bare logger still render {extra[component]}
    record["extra"].setdefault("component", "applytrack")
    return True


def get_logger(component: str = "applytrack") -> Any:
    """Get logger instance bound to a component.

    Parameters
    ----------
    component
        Component name (tracker, storage, applications, cli)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "applytrack",
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Time a block and log its duration at DEBUG.

    Yields
    ------
    dict
        Context dictionary the block can add fields to

    Example
    -------
    >>> with timing_context("dashboard", component="tracker") as ctx:
    ...     snapshot = service.dashboard()
    ...     ctx["events"] = len(snapshot.daily)
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = dict(metadata)

    try:
        yield context
    finally:
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        logger.bind(component=component, timing=True, operation=operation).debug(
            f"{operation} took {duration_ms:.2f} ms",
            duration_ms=duration_ms,
            **context,
        )
