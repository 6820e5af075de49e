"""Fire-and-forget delivery of score events to a telemetry sink."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict

from ..io.models import ScoreReport

logger = logging.getLogger(__name__)

TelemetrySink = Callable[["ScoreEvent"], None]


@dataclass(frozen=True, slots=True)
class ScoreEvent:
    """Numeric scores plus the file types of the compared images."""

    global_score: int
    structural_score: int
    composite_label: str
    source_file_type: str
    derived_file_type: str

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LoggingTelemetrySink:
    """Sink that writes each event to a logger."""

    def __init__(self, logger_name: str = "image_integrity.telemetry", level: int = logging.INFO) -> None:
        self._logger = logging.getLogger(logger_name)
        self._level = level

    def __call__(self, event: ScoreEvent) -> None:
        self._logger.log(
            self._level,
            "integrity_score global=%d structural=%d source_type=%s derived_type=%s",
            event.global_score,
            event.structural_score,
            event.source_file_type,
            event.derived_file_type,
        )


def file_type_from_name(name: str) -> str:
    """Return the lower-cased extension of *name*, or ``"unknown"``."""
    filename = (name or "").rsplit("/", 1)[-1]
    if "." not in filename:
        return "unknown"
    ext = filename.rsplit(".", 1)[-1].lower()
    return ext or "unknown"


def build_event(report: ScoreReport) -> ScoreEvent:
    return ScoreEvent(
        global_score=report.global_score,
        structural_score=report.structural_score,
        composite_label=report.composite_label,
        source_file_type=file_type_from_name(report.metadata.source_name),
        derived_file_type=file_type_from_name(report.metadata.derived_name),
    )


def emit_score_event(report: ScoreReport, sink: TelemetrySink | None) -> bool:
    """Send a copy of *report*'s scores to *sink*; return whether delivery succeeded.

    Sink failures are logged and never propagate to the caller.
    """
    if sink is None:
        return False
    try:
        sink(build_event(report))
    except Exception:  # noqa: BLE001
        logger.warning("Telemetry delivery failed for %s", report.composite_label, exc_info=True)
        return False
    return True
