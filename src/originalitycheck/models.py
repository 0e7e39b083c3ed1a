"""Typed models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

InputType = Literal["text", "pdf"]
DetectionStatus = Literal["success", "failed"]
PdfExtractionStatus = Literal["success", "partial", "failed", "not_applicable"]
UniquenessLevel = Literal["high", "medium", "low"]
SuggestionType = Literal["positive", "citation", "rewrite"]
SegmentType = Literal["unique", "referenced", "unreferenced"]
AnalysisStatus = Literal["pending", "processing", "completed", "failed"]

SUGGESTION_TYPES: frozenset[str] = frozenset({"positive", "citation", "rewrite"})
PDF_EXTRACTION_STATUSES: frozenset[str] = frozenset(
    {"success", "partial", "failed", "not_applicable"}
)


@dataclass(frozen=True)
class Document:
    """Raw submitted text."""

    text: str
    input_type: InputType = "text"


@dataclass(frozen=True)
class SegmentedDocument:
    """Body and references split of one document."""

    body_text: str
    references_text: str
    detection_status: DetectionStatus


@dataclass(frozen=True)
class CandidatePaper:
    """Normalized literature record from any index."""

    title: str
    abstract: str
    source: str
    url: str


@dataclass(frozen=True)
class MatchProposal:
    """One validated similarity proposal from the text-understanding service."""

    paper_index: int
    matched_text_user: str
    matched_text_paper: str
    similarity_percentage: float
    section_name: str


@dataclass(frozen=True)
class SimilarityMatch:
    """A body passage similar to a retrieved paper."""

    paper_title: str
    paper_source: str
    paper_url: str
    matched_text_user: str
    matched_text_paper: str
    similarity_percentage: float
    is_referenced: bool
    section_name: str = "Unknown"

    def to_dict(self) -> dict[str, object]:
        return {
            "paper_title": self.paper_title,
            "paper_source": self.paper_source,
            "paper_url": self.paper_url,
            "matched_text_user": self.matched_text_user,
            "matched_text_paper": self.matched_text_paper,
            "similarity_percentage": self.similarity_percentage,
            "is_referenced": self.is_referenced,
            "section_name": self.section_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimilarityMatch:
        return cls(
            paper_title=str(data.get("paper_title") or ""),
            paper_source=str(data.get("paper_source") or ""),
            paper_url=str(data.get("paper_url") or ""),
            matched_text_user=str(data.get("matched_text_user") or ""),
            matched_text_paper=str(data.get("matched_text_paper") or ""),
            similarity_percentage=float(data.get("similarity_percentage") or 0.0),
            is_referenced=bool(data.get("is_referenced")),
            section_name=str(data.get("section_name") or "Unknown"),
        )


@dataclass(frozen=True)
class ResearchOverview:
    """Neutral overview of the submitted research."""

    problem_summary: str
    methodology: str
    contribution: str
    domain: str

    def to_dict(self) -> dict[str, str]:
        return {
            "problem_summary": self.problem_summary,
            "methodology": self.methodology,
            "contribution": self.contribution,
            "domain": self.domain,
        }


@dataclass(frozen=True)
class NoveltyAnalysis:
    """What appears novel about the submitted work."""

    novel_aspects: tuple[str, ...] = ()
    contrast_with_existing: str = ""
    summary: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "novel_aspects": list(self.novel_aspects),
            "contrast_with_existing": self.contrast_with_existing,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class Assumption:
    statement: str
    category: str


@dataclass(frozen=True)
class IdentifiedAssumptions:
    assumptions: tuple[Assumption, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "assumptions": [
                {"statement": item.statement, "category": item.category}
                for item in self.assumptions
            ]
        }


@dataclass(frozen=True)
class GuidanceSuggestion:
    """One actionable suggestion shown to the author."""

    type: SuggestionType
    message: str
    section: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"type": self.type, "message": self.message}
        if self.section:
            payload["section"] = self.section
        return payload


@dataclass(frozen=True)
class ScoreResult:
    overall_score: float
    uniqueness_level: UniquenessLevel


@dataclass(frozen=True)
class AnalysisReport:
    """Immutable output of one pipeline run before persistence."""

    segmented: SegmentedDocument
    papers: tuple[CandidatePaper, ...]
    research_overview: ResearchOverview
    novelty_analysis: NoveltyAnalysis
    identified_assumptions: IdentifiedAssumptions
    matches: tuple[SimilarityMatch, ...]
    score: ScoreResult
    guidance_suggestions: tuple[GuidanceSuggestion, ...]


@dataclass(frozen=True)
class AnalysisRecord:
    """Persisted state of one analysis."""

    analysis_id: str
    title: str
    input_type: InputType
    original_text: str
    status: AnalysisStatus = "pending"
    body_text: str | None = None
    references_text: str | None = None
    reference_detection_status: str = "pending"
    pdf_extraction_status: str = "not_applicable"
    overall_similarity_score: float | None = None
    uniqueness_level: str | None = None
    research_overview: dict[str, Any] | None = None
    novelty_analysis: dict[str, Any] | None = None
    identified_assumptions: dict[str, Any] | None = None
    guidance_suggestions: list[dict[str, Any]] | None = None
    error: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def display_text(self) -> str:
        return self.body_text or self.original_text


@dataclass(frozen=True)
class MatchInfo:
    """Value copy of the match that produced a highlighted segment."""

    paper_title: str
    paper_source: str
    similarity_percentage: float
    is_referenced: bool


@dataclass(frozen=True)
class HighlightedSegment:
    text: str
    type: SegmentType
    match_info: MatchInfo | None = None


@dataclass(frozen=True)
class AnalysisRequest:
    """Inbound trigger for one analysis run."""

    analysis_id: str
    text: str
    pdf_extraction_status: str = "not_applicable"


@dataclass(frozen=True)
class PipelineResult:
    """Status for a single analysis run."""

    analysis_id: str
    success: bool
    error: str | None = None
    report: AnalysisReport | None = field(default=None, compare=False)
