"""
RoundLens — Logging & Timing

structlog setup plus a lightweight timing span used around each analysis
pass. Spans log at debug level and escalate to a warning when they exceed
the configured ``slow_analysis_ms`` budget.

Usage:
    configure_logging()
    with trace_span("analysis.run", outcomes=len(outcomes)):
        result = engine.analyze(outcomes)
"""

from __future__ import annotations

import functools
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Optional

import structlog

from roundlens.config import get_settings

logger = structlog.get_logger(__name__)


# ──────────────────────────────────────────────
# Configuration
# ──────────────────────────────────────────────

def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structlog for the host process.

    Library code never calls this on import; applications (or tests) opt in.
    Falls back to ``Settings.log_level`` / ``Settings.log_json``.
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    use_json = settings.log_json if json_output is None else json_output

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        cache_logger_on_first_use=False,
    )
    logger.debug("logging_configured", level=level_name, json=use_json)


# ──────────────────────────────────────────────
# Timing Spans
# ──────────────────────────────────────────────

@contextmanager
def trace_span(name: str, **metadata: Any):
    """Time a block of code and log the elapsed milliseconds.

    Args:
        name: Span name (e.g., "analysis.run").
        **metadata: Extra key/values attached to both log events.
    """
    start = time.perf_counter()
    logger.debug("trace_span_start", span_name=name, **metadata)
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        if elapsed_ms > get_settings().slow_analysis_ms:
            logger.warning("trace_span_slow", span_name=name, elapsed_ms=elapsed_ms, **metadata)
        else:
            logger.debug("trace_span_end", span_name=name, elapsed_ms=elapsed_ms, **metadata)


def traced(name: Optional[str] = None):
    """Decorator form of :func:`trace_span`.

    Usage:
        @traced("indicators.compute")
        def compute(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        span_name = name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with trace_span(span_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator
