"""Similarity classification of body text against retrieved papers."""

from __future__ import annotations

import logging
import math
from typing import Any

from .attribution import is_referenced
from .llm_client import TextUnderstanding, generate_payload
from .models import CandidatePaper, MatchProposal, SimilarityMatch
from .prompts import CLASSIFICATION_MAX_PAPERS, build_similarity_request

logger = logging.getLogger(__name__)

MIN_REPORTED_SIMILARITY = 25
MAX_SIMILARITY = 100.0
MAX_EXCERPT_CHARS = 100


def parse_match_proposals(payload: Any, paper_count: int) -> list[MatchProposal]:
    """Keep only well-formed proposals that point at a supplied paper."""

    if not isinstance(payload, list):
        return []

    proposals: list[MatchProposal] = []
    for item in payload:
        proposal = _parse_proposal(item, paper_count)
        if proposal is None:
            logger.debug("Discarding match proposal: %r", item)
            continue
        proposals.append(proposal)
    return proposals


def _parse_proposal(item: Any, paper_count: int) -> MatchProposal | None:
    if not isinstance(item, dict):
        return None

    paper_index = item.get("paperIndex")
    if isinstance(paper_index, bool) or not isinstance(paper_index, int):
        return None
    if not 0 <= paper_index < paper_count:
        return None

    matched_text_user = item.get("matchedTextUser")
    if not isinstance(matched_text_user, str) or not matched_text_user:
        return None

    similarity = item.get("similarityPercentage")
    if isinstance(similarity, bool) or not isinstance(similarity, (int, float)):
        return None
    if not math.isfinite(similarity):
        return None
    # Anything at or below the reporting threshold counts as no match.
    if similarity <= MIN_REPORTED_SIMILARITY:
        return None

    matched_text_paper = item.get("matchedTextPaper")
    section_name = item.get("sectionName")
    return MatchProposal(
        paper_index=paper_index,
        matched_text_user=matched_text_user[:MAX_EXCERPT_CHARS],
        matched_text_paper=(
            matched_text_paper[:MAX_EXCERPT_CHARS]
            if isinstance(matched_text_paper, str)
            else ""
        ),
        similarity_percentage=min(float(similarity), MAX_SIMILARITY),
        section_name=(
            section_name.strip()
            if isinstance(section_name, str) and section_name.strip()
            else "Unknown"
        ),
    )


class SimilarityClassifier:
    """Ask the text-understanding service which passages resemble which papers."""

    def __init__(self, client: TextUnderstanding) -> None:
        self.client = client

    def classify(
        self,
        body_text: str,
        references_text: str,
        papers: list[CandidatePaper],
    ) -> list[SimilarityMatch]:
        supplied = papers[:CLASSIFICATION_MAX_PAPERS]
        if not supplied:
            return []

        payload = generate_payload(self.client, build_similarity_request(body_text, supplied))
        proposals = parse_match_proposals(payload, paper_count=len(supplied))

        matches: list[SimilarityMatch] = []
        for proposal in proposals:
            paper = supplied[proposal.paper_index]
            matches.append(
                SimilarityMatch(
                    paper_title=paper.title,
                    paper_source=paper.source,
                    paper_url=paper.url,
                    matched_text_user=proposal.matched_text_user,
                    matched_text_paper=proposal.matched_text_paper,
                    similarity_percentage=proposal.similarity_percentage,
                    is_referenced=is_referenced(paper.title, references_text),
                    section_name=proposal.section_name,
                )
            )
        return matches
