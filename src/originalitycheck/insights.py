"""Overview, novelty and assumption extraction with neutral fallbacks."""

from __future__ import annotations

import logging
from typing import Any

from .llm_client import TextUnderstanding, generate_payload
from .models import Assumption, IdentifiedAssumptions, NoveltyAnalysis, ResearchOverview
from .prompts import (
    build_assumptions_request,
    build_novelty_request,
    build_overview_request,
)

logger = logging.getLogger(__name__)

MAX_NOVEL_ASPECTS = 5
MAX_ASSUMPTIONS = 8

FALLBACK_OVERVIEW = ResearchOverview(
    problem_summary="Overview generation unavailable",
    methodology="Please review the text manually",
    contribution="Manual assessment required",
    domain="Unknown",
)
FALLBACK_NOVELTY = NoveltyAnalysis(
    novel_aspects=(),
    contrast_with_existing="",
    summary="Novelty analysis could not be completed",
)


def extract_research_overview(
    client: TextUnderstanding, body_text: str
) -> ResearchOverview:
    payload = generate_payload(client, build_overview_request(body_text))
    if not isinstance(payload, dict):
        return FALLBACK_OVERVIEW

    fields = {}
    for key, default in FALLBACK_OVERVIEW.to_dict().items():
        value = payload.get(key)
        fields[key] = value.strip() if isinstance(value, str) and value.strip() else default
    return ResearchOverview(**fields)


def analyze_novelty(client: TextUnderstanding, body_text: str) -> NoveltyAnalysis:
    payload = generate_payload(client, build_novelty_request(body_text))
    if not isinstance(payload, dict):
        return FALLBACK_NOVELTY

    aspects = payload.get("novel_aspects")
    return NoveltyAnalysis(
        novel_aspects=tuple(_clean_strings(aspects)[:MAX_NOVEL_ASPECTS]),
        contrast_with_existing=_as_text(payload.get("contrast_with_existing")),
        summary=_as_text(payload.get("summary")),
    )


def identify_assumptions(
    client: TextUnderstanding, body_text: str
) -> IdentifiedAssumptions:
    payload = generate_payload(client, build_assumptions_request(body_text))
    if not isinstance(payload, dict):
        return IdentifiedAssumptions()

    raw_items = payload.get("assumptions")
    if not isinstance(raw_items, list):
        logger.warning("Assumption payload has no list; ignoring it")
        return IdentifiedAssumptions()

    assumptions: list[Assumption] = []
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        statement = _as_text(item.get("statement"))
        if not statement:
            continue
        assumptions.append(
            Assumption(
                statement=statement,
                category=_as_text(item.get("category")) or "Other",
            )
        )
    return IdentifiedAssumptions(assumptions=tuple(assumptions[:MAX_ASSUMPTIONS]))


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
