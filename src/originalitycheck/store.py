"""JSON-file persistence for analysis records and their matches."""

from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import (
    AnalysisNotFoundError,
    AnalysisStoreError,
    AnalysisTimeoutError,
    InvalidStatusTransitionError,
)
from .io_utils import build_record_path
from .models import AnalysisRecord, AnalysisReport, SimilarityMatch

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"completed", "failed"})
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"processing"}),
    "processing": frozenset({"completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}

_RECORD_FIELDS = {item.name for item in fields(AnalysisRecord)}


def ensure_transition(current: str, new: str) -> None:
    if new not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(f"Cannot move analysis from {current} to {new}")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonAnalysisStore:
    """Stores one JSON document per analysis plus one per match set."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self._lock = threading.Lock()

    def create(
        self,
        title: str,
        text: str,
        input_type: str = "text",
        pdf_extraction_status: str = "not_applicable",
    ) -> AnalysisRecord:
        timestamp = _now()
        record = AnalysisRecord(
            analysis_id=uuid.uuid4().hex,
            title=title,
            input_type=input_type,
            original_text=text,
            pdf_extraction_status=pdf_extraction_status,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._write_record(record)
        return record

    def exists(self, analysis_id: str) -> bool:
        return self._record_path(analysis_id).exists()

    def load(self, analysis_id: str) -> AnalysisRecord:
        path = self._record_path(analysis_id)
        if not path.exists():
            raise AnalysisNotFoundError(f"Analysis not found: {analysis_id}")
        data = self._read_json(path)
        if not isinstance(data, dict):
            raise AnalysisStoreError(f"Malformed analysis record: {path}")
        return AnalysisRecord(**{k: v for k, v in data.items() if k in _RECORD_FIELDS})

    def load_matches(self, analysis_id: str) -> list[SimilarityMatch]:
        path = self._matches_path(analysis_id)
        if not path.exists():
            return []
        data = self._read_json(path)
        if not isinstance(data, list):
            raise AnalysisStoreError(f"Malformed match list: {path}")
        return [SimilarityMatch.from_dict(item) for item in data if isinstance(item, dict)]

    def mark_processing(self, analysis_id: str) -> AnalysisRecord:
        return self._update(analysis_id, status="processing")

    def save_completed(
        self,
        analysis_id: str,
        report: AnalysisReport,
        pdf_extraction_status: str = "not_applicable",
    ) -> AnalysisRecord:
        """Persist matches, then flip the record to completed."""

        with self._lock:
            current = self.load(analysis_id)
            ensure_transition(current.status, "completed")
            self._write_json(
                self._matches_path(analysis_id),
                [match.to_dict() for match in report.matches],
            )
            record = replace(
                current,
                status="completed",
                body_text=report.segmented.body_text,
                references_text=report.segmented.references_text,
                reference_detection_status=report.segmented.detection_status,
                pdf_extraction_status=pdf_extraction_status,
                overall_similarity_score=report.score.overall_score,
                uniqueness_level=report.score.uniqueness_level,
                research_overview=report.research_overview.to_dict(),
                novelty_analysis=report.novelty_analysis.to_dict(),
                identified_assumptions=report.identified_assumptions.to_dict(),
                guidance_suggestions=[
                    suggestion.to_dict() for suggestion in report.guidance_suggestions
                ],
                error=None,
                updated_at=_now(),
            )
            try:
                self._write_record(record)
            except AnalysisStoreError:
                # A run that could not complete owns no match rows.
                self._matches_path(analysis_id).unlink(missing_ok=True)
                raise
        return record

    def mark_failed(self, analysis_id: str, error: str) -> AnalysisRecord:
        return self._update(analysis_id, status="failed", error=error)

    def delete(self, analysis_id: str) -> None:
        """Remove an analysis together with the matches it owns."""

        if not self.exists(analysis_id):
            raise AnalysisNotFoundError(f"Analysis not found: {analysis_id}")
        self._matches_path(analysis_id).unlink(missing_ok=True)
        self._record_path(analysis_id).unlink()

    def wait_for_completion(
        self,
        analysis_id: str,
        poll_interval_sec: float,
        timeout_sec: int,
        stop_event: threading.Event | None = None,
        progress_callback: Callable[[int, str], None] | None = None,
    ) -> AnalysisRecord:
        """Poll the record read-only until it reaches a terminal status.

        Returns early with the last seen record when ``stop_event`` is set.
        """

        start = time.monotonic()
        attempt = 0

        while True:
            attempt += 1
            record = self.load(analysis_id)

            if progress_callback:
                elapsed = int(time.monotonic() - start)
                progress_callback(attempt, f"Attempt {attempt} | State: {record.status} | {elapsed}s")

            if record.status in TERMINAL_STATUSES:
                return record

            if time.monotonic() - start > timeout_sec:
                raise AnalysisTimeoutError(f"Timed out waiting for analysis: {analysis_id}")

            if stop_event is not None:
                if stop_event.wait(poll_interval_sec):
                    return record
            else:
                time.sleep(poll_interval_sec)

    def _update(self, analysis_id: str, status: str, **changes: Any) -> AnalysisRecord:
        with self._lock:
            current = self.load(analysis_id)
            ensure_transition(current.status, status)
            record = replace(current, status=status, updated_at=_now(), **changes)
            self._write_record(record)
        return record

    def _record_path(self, analysis_id: str) -> Path:
        return build_record_path(self.output_dir, "analyses", analysis_id, ".json")

    def _matches_path(self, analysis_id: str) -> Path:
        return build_record_path(self.output_dir, "matches", analysis_id, ".json")

    def _write_record(self, record: AnalysisRecord) -> None:
        self._write_json(self._record_path(record.analysis_id), asdict(record))

    def _write_json(self, path: Path, payload: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(payload, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            tmp_path.replace(path)
        except OSError as exc:
            raise AnalysisStoreError(f"Failed to write {path}: {exc}") from exc

    def _read_json(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise AnalysisStoreError(f"Failed to read {path}: {exc}") from exc
