"""Split a submitted document into body text and references."""

from __future__ import annotations

import logging
import re

from .models import SegmentedDocument

logger = logging.getLogger(__name__)

REFERENCE_HEADING_PATTERN = re.compile(
    r"\n[ \t]*(?:References|Bibliography|Works Cited|Literature Cited)[ \t]*\n",
    re.IGNORECASE,
)
TRAILING_CITATION_PATTERN = re.compile(r"^\d+\.[ \t]+[A-Z]", re.MULTILINE)
TRAILING_CITATION_MARKER_PATTERN = re.compile(r"[\[(]\d+[\])]")

# Fraction of the document that starts the positional fallback window.
TRAILING_SECTION_START = 0.8


def split_references(text: str) -> SegmentedDocument:
    """Return body and references of ``text``.

    Only the first standalone heading line is considered. Without one, the
    final 20% of the document is treated as references when it looks like a
    numbered citation list.
    """

    heading = REFERENCE_HEADING_PATTERN.search(text)
    if heading is not None:
        return SegmentedDocument(
            body_text=text[: heading.start()].strip(),
            references_text=text[heading.start() :].strip(),
            detection_status="success",
        )

    cutoff = int(len(text) * TRAILING_SECTION_START)
    trailing = text[cutoff:]
    if _looks_like_citation_list(text, cutoff):
        logger.debug("No references heading; using trailing slice from %d", cutoff)
        return SegmentedDocument(
            body_text=text[:cutoff].strip(),
            references_text=trailing.strip(),
            detection_status="success",
        )

    return SegmentedDocument(
        body_text=text,
        references_text="",
        detection_status="failed",
    )


def _looks_like_citation_list(text: str, start: int) -> bool:
    # Searching from an offset keeps "^" bound to real line starts.
    if TRAILING_CITATION_MARKER_PATTERN.search(text, start):
        return True
    return TRAILING_CITATION_PATTERN.search(text, start) is not None
