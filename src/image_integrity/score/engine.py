"""Orchestration of a single integrity scoring call."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict

from ..acquire.fetch import DEFAULT_MAX_BYTES, DEFAULT_TIMEOUT, read_image_source
from ..acquire.validate import validate_image_source
from ..errors import ScoringTimeoutError
from ..extract.normalize import load_pair
from ..io.models import ComponentScores, PixelBuffer, ReportMetadata, ScoreReport
from .explain import composite_label, generate_explanation
from .global_score import global_distance, score_from_distance
from .structural import STRUCTURAL_ANALYSES, combine_components
from .telemetry import TelemetrySink, emit_score_event

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4

Analysis = Callable[[PixelBuffer, PixelBuffer], Any]

_ANALYSES: Dict[str, Analysis] = {
    "histogram_distance": global_distance,
    **STRUCTURAL_ANALYSES,
}


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def _check_deadline(deadline: float | None, timeout: float | None) -> None:
    if deadline is not None and timeout is not None and time.monotonic() >= deadline:
        raise ScoringTimeoutError(timeout)


def _run_sequential(
    source: PixelBuffer, derived: PixelBuffer, deadline: float | None, timeout: float | None
) -> Dict[str, Any]:
    results: Dict[str, Any] = {}
    for key, analysis in _ANALYSES.items():
        _check_deadline(deadline, timeout)
        results[key] = analysis(source, derived)
    _check_deadline(deadline, timeout)
    return results


def _run_parallel(
    source: PixelBuffer,
    derived: PixelBuffer,
    max_workers: int,
    deadline: float | None,
    timeout: float | None,
) -> Dict[str, Any]:
    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="integrity"
    )
    try:
        futures = {
            key: executor.submit(analysis, source, derived)
            for key, analysis in _ANALYSES.items()
        }
        _, pending = concurrent.futures.wait(
            futures.values(), timeout=_remaining(deadline)
        )
        if pending:
            for future in pending:
                future.cancel()
            raise ScoringTimeoutError(timeout if timeout is not None else 0.0)
        return {key: future.result() for key, future in futures.items()}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def score_buffers(
    source: PixelBuffer,
    derived: PixelBuffer,
    *,
    max_workers: int = DEFAULT_WORKERS,
    timeout: float | None = None,
) -> ComponentScores:
    """Run the global and structural analyses on two same-size buffers.

    With ``max_workers > 1`` the four analyses run on a thread pool and are
    joined before returning. *timeout* bounds the analyses in seconds.
    """
    if source.size != derived.size:
        raise ValueError(
            f"Buffers must share dimensions, got {source.size} and {derived.size}"
        )
    deadline = time.monotonic() + timeout if timeout is not None else None
    return _score_until(source, derived, max_workers, deadline, timeout)


def _score_until(
    source: PixelBuffer,
    derived: PixelBuffer,
    max_workers: int,
    deadline: float | None,
    timeout: float | None,
) -> ComponentScores:
    if max_workers > 1:
        results = _run_parallel(source, derived, max_workers, deadline, timeout)
    else:
        results = _run_sequential(source, derived, deadline, timeout)

    return ComponentScores(
        histogram_distance=float(results["histogram_distance"]),
        hash_similarity=int(results["hash_similarity"]),
        edge_preservation=int(results["edge_preservation"]),
        feature_preservation=int(results["feature_preservation"]),
    )


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_report(
    components: ComponentScores, source_name: str, derived_name: str
) -> ScoreReport:
    """Fuse component measurements into the final report."""
    global_value = score_from_distance(components.histogram_distance)
    structural_value = combine_components(
        {
            "hash_similarity": components.hash_similarity,
            "edge_preservation": components.edge_preservation,
            "feature_preservation": components.feature_preservation,
        }
    )
    return ScoreReport(
        global_score=global_value,
        structural_score=structural_value,
        composite_label=composite_label(global_value, structural_value),
        explanation=generate_explanation(global_value, structural_value),
        metadata=ReportMetadata(
            source_name=source_name,
            derived_name=derived_name,
            timestamp=_utc_timestamp(),
        ),
        components=components,
    )


def compute_integrity_score(
    source_bytes: bytes,
    derived_bytes: bytes,
    source_name: str,
    derived_name: str,
    *,
    max_workers: int = DEFAULT_WORKERS,
    timeout: float | None = None,
    telemetry: TelemetrySink | None = None,
) -> ScoreReport:
    """Score a derived image against its source and return a ``ScoreReport``.

    Decoding errors (``LoadError``, ``InvalidDimensionsError``) propagate to
    the caller unchanged. *timeout* bounds the whole call, decoding included;
    ``ScoringTimeoutError`` is raised when it expires. The optional
    *telemetry* sink receives a copy of the scores after the report is built.
    """
    deadline = time.monotonic() + timeout if timeout is not None else None

    source, derived = load_pair(source_bytes, derived_bytes, source_name, derived_name)
    _check_deadline(deadline, timeout)

    components = _score_until(source, derived, max_workers, deadline, timeout)
    report = build_report(components, source_name, derived_name)
    logger.debug(
        "Scored %s vs %s: %s (%s)",
        source_name,
        derived_name,
        report.composite_label,
        components.as_dict(),
    )

    emit_score_event(report, telemetry)
    return report


def compute_integrity_score_from_paths(
    source_location: str | Path,
    derived_location: str | Path,
    *,
    max_bytes: int = DEFAULT_MAX_BYTES,
    fetch_timeout: float = DEFAULT_TIMEOUT,
    max_workers: int = DEFAULT_WORKERS,
    timeout: float | None = None,
    telemetry: TelemetrySink | None = None,
) -> ScoreReport:
    """Acquire and validate two images by path or URL, then score them."""
    source = validate_image_source(
        read_image_source(source_location, timeout=fetch_timeout, max_bytes=max_bytes),
        max_bytes=max_bytes,
    )
    derived = validate_image_source(
        read_image_source(derived_location, timeout=fetch_timeout, max_bytes=max_bytes),
        max_bytes=max_bytes,
    )
    return compute_integrity_score(
        source.data,
        derived.data,
        source.name,
        derived.name,
        max_workers=max_workers,
        timeout=timeout,
        telemetry=telemetry,
    )
