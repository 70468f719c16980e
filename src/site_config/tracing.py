"""Structured per-stage tracing for the configuration pipeline."""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from .models import StageTrace


logger = logging.getLogger(__name__)

STAGES = (
    'discover',
    'parse',
    'flatten',
    'categorize',
    'default',
    'unflatten',
    'serialize',
    'commit',
)


@contextmanager
def stage_span(
    stage: str,
    trace: Optional[List[StageTrace]] = None,
    **fields: Any,
) -> Iterator[Dict[str, Any]]:
    """Time one pipeline stage and log its outcome.

    The yielded dict may be updated inside the block; its contents are
    attached to the completion record.

    Args:
        stage: Stage name (one of STAGES)
        trace: Optional list the finished StageTrace is appended to
        **fields: Structured fields logged with the span

    Example:
        >>> with stage_span('parse', trace, files=3) as span:
        ...     span['errors'] = 0
    """
    if stage not in STAGES:
        raise ValueError(f"Unknown pipeline stage: {stage}")

    span_fields: Dict[str, Any] = dict(fields)
    logger.debug(f"[{stage}] started", extra={'stage': stage, 'span': span_fields})
    start = time.perf_counter()
    try:
        yield span_fields
    except Exception as e:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.error(
            f"[{stage}] failed after {duration_ms:.1f}ms: {e}",
            extra={'stage': stage, 'duration_ms': duration_ms},
        )
        if trace is not None:
            trace.append(StageTrace(stage, duration_ms, 'error', span_fields))
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"[{stage}] completed in {duration_ms:.1f}ms",
        extra={'stage': stage, 'duration_ms': duration_ms},
    )
    if trace is not None:
        trace.append(StageTrace(stage, duration_ms, 'ok', span_fields))
