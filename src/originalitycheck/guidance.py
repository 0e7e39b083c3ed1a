"""Context-specific guidance with a deterministic rule-based fallback."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Any

from .llm_client import TextUnderstanding, generate_payload
from .models import (
    SUGGESTION_TYPES,
    GuidanceSuggestion,
    IdentifiedAssumptions,
    NoveltyAnalysis,
    ScoreResult,
    SimilarityMatch,
)
from .prompts import build_guidance_request

logger = logging.getLogger(__name__)

MIN_GENERATED_SUGGESTIONS = 2
MAX_SUGGESTIONS = 6
MAX_CONTEXT_NOVEL_ASPECTS = 3
MAX_CITATION_SECTIONS = 2
REWRITE_SCORE_THRESHOLD = 40
UNKNOWN_SECTION = "Unknown"

HIGH_UNIQUENESS_MESSAGE = (
    "Your research demonstrates strong originality with minimal overlap to "
    "indexed literature."
)
MEDIUM_UNIQUENESS_MESSAGE = (
    "Your work shows a reasonable level of originality while building on "
    "established research."
)
CITATION_MESSAGE_TEMPLATE = (
    "The {section} section contains unreferenced similar content. Consider "
    "reviewing and adding appropriate citations."
)
REWRITE_MESSAGE = (
    "Some passages show notable similarity to existing work. Consider rephrasing "
    "to better highlight your unique perspective."
)


def deduplicate_suggestions(
    suggestions: Iterable[GuidanceSuggestion],
) -> list[GuidanceSuggestion]:
    """Drop later suggestions whose message repeats an earlier one, ignoring case."""

    seen: set[str] = set()
    unique: list[GuidanceSuggestion] = []
    for suggestion in suggestions:
        key = suggestion.message.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(suggestion)
    return unique


def build_guidance_context(
    matches: Sequence[SimilarityMatch],
    score: ScoreResult,
    novelty: NoveltyAnalysis,
    assumptions: IdentifiedAssumptions,
) -> dict[str, Any]:
    """Summarize the analysis for the prompt without exposing raw matches."""

    unreferenced = [match for match in matches if not match.is_referenced]
    return {
        "overallScore": round(score.overall_score),
        "uniquenessLevel": score.uniqueness_level,
        "unreferencedMatchCount": len(unreferenced),
        "referencedMatchCount": len(matches) - len(unreferenced),
        "affectedSections": list(dict.fromkeys(match.section_name for match in unreferenced)),
        "novelAspects": list(novelty.novel_aspects[:MAX_CONTEXT_NOVEL_ASPECTS]),
        "hasAssumptions": bool(assumptions.assumptions),
        "assumptionCategories": list(
            dict.fromkeys(item.category for item in assumptions.assumptions)
        ),
    }


def parse_suggestions(payload: Any) -> list[GuidanceSuggestion]:
    if not isinstance(payload, list):
        return []

    suggestions: list[GuidanceSuggestion] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        suggestion_type = item.get("type")
        message = item.get("message")
        if suggestion_type not in SUGGESTION_TYPES:
            continue
        if not isinstance(message, str) or not message.strip():
            continue
        section = item.get("section")
        suggestions.append(
            GuidanceSuggestion(
                type=suggestion_type,
                message=message.strip(),
                section=section.strip() if isinstance(section, str) and section.strip() else None,
            )
        )
    return deduplicate_suggestions(suggestions)


def fallback_guidance(
    matches: Sequence[SimilarityMatch],
    score: ScoreResult,
) -> list[GuidanceSuggestion]:
    suggestions: list[GuidanceSuggestion] = []
    unreferenced = [match for match in matches if not match.is_referenced]
    referenced_count = len(matches) - len(unreferenced)

    if score.uniqueness_level == "high":
        suggestions.append(GuidanceSuggestion(type="positive", message=HIGH_UNIQUENESS_MESSAGE))
    elif score.uniqueness_level == "medium":
        suggestions.append(GuidanceSuggestion(type="positive", message=MEDIUM_UNIQUENESS_MESSAGE))

    section_counts = Counter(
        match.section_name
        for match in unreferenced
        if match.section_name and match.section_name != UNKNOWN_SECTION
    )
    # Counter.most_common keeps first-seen order among equal counts.
    for section, _ in section_counts.most_common(MAX_CITATION_SECTIONS):
        suggestions.append(
            GuidanceSuggestion(
                type="citation",
                section=section,
                message=CITATION_MESSAGE_TEMPLATE.format(section=section.lower()),
            )
        )

    if score.overall_score > REWRITE_SCORE_THRESHOLD and unreferenced:
        suggestions.append(GuidanceSuggestion(type="rewrite", message=REWRITE_MESSAGE))

    if referenced_count > 0:
        verb = "passages are" if referenced_count > 1 else "passage is"
        suggestions.append(
            GuidanceSuggestion(
                type="positive",
                message=(
                    f"{referenced_count} similar {verb} properly attributed, "
                    "reflecting good citation practice."
                ),
            )
        )

    return deduplicate_suggestions(suggestions)


class GuidanceGenerator:
    def __init__(self, client: TextUnderstanding) -> None:
        self.client = client

    def generate(
        self,
        body_text: str,
        matches: Sequence[SimilarityMatch],
        score: ScoreResult,
        novelty: NoveltyAnalysis,
        assumptions: IdentifiedAssumptions,
    ) -> list[GuidanceSuggestion]:
        context = build_guidance_context(matches, score, novelty, assumptions)
        payload = generate_payload(self.client, build_guidance_request(context, body_text))
        suggestions = parse_suggestions(payload)
        if len(suggestions) >= MIN_GENERATED_SUGGESTIONS:
            return suggestions[:MAX_SUGGESTIONS]

        if payload is not None:
            logger.warning(
                "Guidance service returned %d valid suggestions; using rules",
                len(suggestions),
            )
        return fallback_guidance(matches, score)
