"""End-to-end pipeline: segmentation, retrieval, classification, guidance."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tqdm import tqdm

from .exceptions import InvalidAnalysisRequestError
from .guidance import GuidanceGenerator
from .insights import analyze_novelty, extract_research_overview, identify_assumptions
from .io_utils import is_valid_record_id
from .literature import LiteratureRetriever
from .llm_client import TextUnderstanding
from .models import (
    PDF_EXTRACTION_STATUSES,
    AnalysisReport,
    AnalysisRequest,
    Document,
    PipelineResult,
)
from .references import split_references
from .scoring import aggregate_score
from .similarity import SimilarityClassifier
from .store import JsonAnalysisStore

if TYPE_CHECKING:
    from .progress import RichProgressTracker, StageUpdater

logger = logging.getLogger(__name__)


def parse_trigger_payload(payload: Any) -> AnalysisRequest:
    """Validate an inbound ``{analysisId, text, pdfExtractionStatus}`` trigger."""

    if not isinstance(payload, dict):
        raise InvalidAnalysisRequestError("Trigger payload must be an object")

    analysis_id = payload.get("analysisId")
    text = payload.get("text")
    if not isinstance(analysis_id, str) or not analysis_id:
        raise InvalidAnalysisRequestError("Missing analysisId or text")
    if not isinstance(text, str) or not text.strip():
        raise InvalidAnalysisRequestError("Missing analysisId or text")
    if not is_valid_record_id(analysis_id):
        raise InvalidAnalysisRequestError(f"Invalid analysisId: {analysis_id!r}")

    pdf_status = payload.get("pdfExtractionStatus") or "not_applicable"
    if pdf_status not in PDF_EXTRACTION_STATUSES:
        raise InvalidAnalysisRequestError(f"Invalid pdfExtractionStatus: {pdf_status!r}")

    return AnalysisRequest(
        analysis_id=analysis_id,
        text=text,
        pdf_extraction_status=pdf_status,
    )


class OriginalityAnalysisPipeline:
    """Coordinates every analysis stage and persists the outcome."""

    def __init__(
        self,
        retriever: LiteratureRetriever,
        text_understanding: TextUnderstanding,
        store: JsonAnalysisStore,
        progress_tracker: "RichProgressTracker | None" = None,
    ) -> None:
        self.retriever = retriever
        self.text_understanding = text_understanding
        self.classifier = SimilarityClassifier(text_understanding)
        self.guidance = GuidanceGenerator(text_understanding)
        self.store = store
        self.progress_tracker = progress_tracker

    def analyze(self, text: str, stage: "StageUpdater | None" = None) -> AnalysisReport:
        """Run every stage on ``text`` without touching the store.

        External failures degrade only their own stage.
        """

        self._start(stage, "Reference Detection")
        segmented = split_references(text)
        logger.info("Reference detection status: %s", segmented.detection_status)
        self._complete(stage, "Reference Detection", segmented.detection_status)

        self._start(stage, "Literature Search")
        papers = self.retriever.retrieve(segmented.body_text)
        self._complete(stage, "Literature Search", f"{len(papers)} papers")

        self._start(stage, "Research Overview")
        overview = extract_research_overview(self.text_understanding, segmented.body_text)
        self._complete(stage, "Research Overview", overview.domain)

        self._start(stage, "Novelty Analysis")
        novelty = analyze_novelty(self.text_understanding, segmented.body_text)
        self._complete(stage, "Novelty Analysis", f"{len(novelty.novel_aspects)} aspects")

        self._start(stage, "Assumptions")
        assumptions = identify_assumptions(self.text_understanding, segmented.body_text)
        self._complete(stage, "Assumptions", f"{len(assumptions.assumptions)} found")

        self._start(stage, "Similarity Analysis")
        matches = self.classifier.classify(
            segmented.body_text, segmented.references_text, papers
        )
        score = aggregate_score(matches)
        logger.info(
            "Found %d matches, score: %.1f (%s)",
            len(matches),
            score.overall_score,
            score.uniqueness_level,
        )
        self._complete(stage, "Similarity Analysis", f"{len(matches)} matches")
        if stage is not None:
            stage.tracker.update_score(stage.doc_idx, score.overall_score)

        self._start(stage, "Guidance")
        suggestions = self.guidance.generate(
            segmented.body_text, matches, score, novelty, assumptions
        )
        self._complete(stage, "Guidance", f"{len(suggestions)} suggestions")

        return AnalysisReport(
            segmented=segmented,
            papers=tuple(papers),
            research_overview=overview,
            novelty_analysis=novelty,
            identified_assumptions=assumptions,
            matches=tuple(matches),
            score=score,
            guidance_suggestions=tuple(suggestions),
        )

    def handle_trigger(self, payload: Any) -> PipelineResult:
        """Validate a trigger payload and run it.

        Raises ``InvalidAnalysisRequestError`` before any state change when
        the payload is incomplete.
        """

        return self.run(parse_trigger_payload(payload))

    def run(self, request: AnalysisRequest, label: str | None = None) -> PipelineResult:
        if self.progress_tracker:
            from .progress import track_processing

            with track_processing(label or request.analysis_id, self.progress_tracker) as stage:
                return self._run(request, stage)
        return self._run(request, None)

    def run_documents(
        self,
        input_paths: list[Path],
        input_type: str = "text",
        pdf_extraction_status: str = "not_applicable",
        title: str | None = None,
    ) -> list[PipelineResult]:
        """Create, trigger and process one analysis per input file."""

        results: list[PipelineResult] = []
        paths = input_paths if self.progress_tracker else tqdm(input_paths, desc="Analyzing")
        for path in paths:
            document = Document(text=path.read_text(encoding="utf-8"), input_type=input_type)
            if not document.text.strip():
                logger.warning("Skipping empty input: %s", path)
                continue
            record = self.store.create(
                title=title or path.stem,
                text=document.text,
                input_type=document.input_type,
                pdf_extraction_status=pdf_extraction_status,
            )
            request = AnalysisRequest(
                analysis_id=record.analysis_id,
                text=document.text,
                pdf_extraction_status=pdf_extraction_status,
            )
            results.append(self.run(request, label=path.name))
        return results

    def _run(self, request: AnalysisRequest, stage: "StageUpdater | None") -> PipelineResult:
        logger.info("Processing analysis: %s", request.analysis_id)
        try:
            self.store.mark_processing(request.analysis_id)
        except Exception as exc:
            logger.error("Cannot start analysis %s: %s", request.analysis_id, exc)
            return PipelineResult(analysis_id=request.analysis_id, success=False, error=str(exc))

        try:
            report = self.analyze(request.text, stage)

            self._start(stage, "Save Results")
            self.store.save_completed(
                request.analysis_id,
                report,
                pdf_extraction_status=request.pdf_extraction_status,
            )
            self._complete(stage, "Save Results", f"{len(report.matches)} matches saved")
        except Exception as exc:
            logger.exception("Analysis %s failed", request.analysis_id)
            if stage is not None and stage.current:
                stage.fail(stage.current, str(exc))
            self._mark_failed(request.analysis_id, str(exc))
            return PipelineResult(analysis_id=request.analysis_id, success=False, error=str(exc))

        return PipelineResult(analysis_id=request.analysis_id, success=True, report=report)

    def _mark_failed(self, analysis_id: str, error: str) -> None:
        try:
            self.store.mark_failed(analysis_id, error)
        except Exception as exc:
            logger.error("Could not mark analysis %s failed: %s", analysis_id, exc)

    def _start(self, stage: "StageUpdater | None", name: str, details: str = "") -> None:
        if stage is not None:
            stage.start(name, details)

    def _complete(self, stage: "StageUpdater | None", name: str, details: str = "") -> None:
        if stage is not None:
            stage.complete(name, details)
