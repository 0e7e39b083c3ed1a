"""Rebuild body text as ordered, non-overlapping highlighted segments."""

from __future__ import annotations

from collections.abc import Sequence

from .models import HighlightedSegment, MatchInfo, SimilarityMatch


def build_highlighted_segments(
    text: str, matches: Sequence[SimilarityMatch]
) -> list[HighlightedSegment]:
    """Split ``text`` into unique and matched segments covering it exactly once.

    Matches are placed in order of first occurrence. Each quote is searched
    forward from the end of the previous placement, so a quote that only
    occurs in already-consumed text, or not at all, is dropped.
    """

    if not matches:
        return [HighlightedSegment(text=text, type="unique")]

    ordered = sorted(matches, key=lambda match: text.find(match.matched_text_user))

    segments: list[HighlightedSegment] = []
    cursor = 0
    for match in ordered:
        quote = match.matched_text_user
        if not quote:
            continue
        position = text.find(quote, cursor)
        if position < 0:
            continue
        if position > cursor:
            segments.append(HighlightedSegment(text=text[cursor:position], type="unique"))
        segments.append(
            HighlightedSegment(
                text=quote,
                type="referenced" if match.is_referenced else "unreferenced",
                match_info=MatchInfo(
                    paper_title=match.paper_title,
                    paper_source=match.paper_source,
                    similarity_percentage=match.similarity_percentage,
                    is_referenced=match.is_referenced,
                ),
            )
        )
        cursor = position + len(quote)

    if cursor < len(text):
        segments.append(HighlightedSegment(text=text[cursor:], type="unique"))
    return segments
