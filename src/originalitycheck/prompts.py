"""Prompt templates and request builders for the text-understanding calls."""

from __future__ import annotations

import json
from typing import Any

from .llm_client import TextUnderstandingRequest
from .models import CandidatePaper

OVERVIEW_TEXT_CHARS = 4000
NOVELTY_TEXT_CHARS = 5000
ASSUMPTIONS_TEXT_CHARS = 5000
CLASSIFICATION_TEXT_CHARS = 3000
CLASSIFICATION_MAX_PAPERS = 12
CLASSIFICATION_ABSTRACT_CHARS = 500
GUIDANCE_SAMPLE_CHARS = 1500

OVERVIEW_SYSTEM_PROMPT = """You are an academic research analyst. Extract a neutral overview from the provided research text. Return ONLY valid JSON with these exact keys:
- problem_summary: A 1-2 sentence summary of the research problem
- methodology: A brief description of the approach or methods
- contribution: The intended contribution or impact
- domain: The research domain/field classification

Be factual and derive everything from the text. Do not speculate."""

NOVELTY_SYSTEM_PROMPT = """You are an academic research analyst specializing in identifying novel contributions. Analyze the provided research text and identify what appears to be novel or unique about the proposed solution or approach.

Return ONLY valid JSON with these exact keys:
- novel_aspects: An array of strings, each describing a specific novel aspect identified in the work (max 5 items)
- contrast_with_existing: A 1-2 sentence description of how this work differs from commonly existing approaches
- summary: A concise 2-3 sentence summary of the novelty of the proposed solution

IMPORTANT:
- Derive everything only from the provided text - do not speculate or hallucinate
- Use neutral, academic language
- If insufficient content exists to identify novelty, return empty arrays and acknowledge limitations"""

ASSUMPTION_CATEGORIES = (
    "Data Availability",
    "System Reliability",
    "Scalability",
    "Performance",
    "Environmental Conditions",
    "Generalization",
    "Resource Requirements",
    "Other",
)

_CATEGORY_LIST = ", ".join(f'"{item}"' for item in ASSUMPTION_CATEGORIES)

ASSUMPTIONS_SYSTEM_PROMPT = f"""You are an academic research analyst specializing in identifying assumptions in research work. Analyze the provided text and identify statements that assume conditions, availability of data, or system behavior.

Look for assumptions such as:
- Availability of datasets
- Reliability of external APIs or services
- Scalability or generalization claims
- Performance expectations
- Environmental or contextual conditions

Return ONLY valid JSON with this structure:
{{
  "assumptions": [
    {{ "statement": "This work assumes...", "category": "Data Availability" }},
    {{ "statement": "The approach relies on...", "category": "System Reliability" }}
  ]
}}

Categories should be one of: {_CATEGORY_LIST}

IMPORTANT:
- Present assumptions as neutral observations, not criticism
- Derive only from the provided text
- Maximum 8 assumptions
- If no clear assumptions are found, return empty array"""

SIMILARITY_SYSTEM_PROMPT = """You are an academic similarity analyzer. Compare the user's research text against the provided academic papers.

For each paper where you find conceptual or textual similarity:
1. Identify the similar portion from the user's text (quote exactly)
2. Identify the matching concept from the paper abstract
3. Estimate similarity percentage (0-100)
4. Mark the section of the user's text (introduction, methodology, results, discussion)

Return ONLY valid JSON array with objects containing:
- paperIndex: index of the matched paper (0-based)
- matchedTextUser: exact quote from user text (max 100 chars)
- matchedTextPaper: matching concept from paper (max 100 chars)
- similarityPercentage: number 0-100
- sectionName: string

Only include matches with similarity > 25%. Return empty array [] if no significant matches."""

GUIDANCE_SYSTEM_TEMPLATE = """You are an academic writing advisor providing constructive, specific guidance. Based on the analysis context provided, generate 3-6 unique guidance suggestions that are specific to this particular research work.

Return ONLY valid JSON array with objects containing:
- type: "positive" | "citation" | "rewrite"
- section: (optional) specific section name if applicable
- message: A specific, actionable suggestion (1-2 sentences, max 150 chars)

Guidelines:
1. Each suggestion must be unique - no duplicates or near-duplicates
2. Be specific to the content - reference actual sections or identified aspects
3. Balance positive observations with constructive advice
4. For high uniqueness ({{high_uniqueness_target}}): emphasize strengths
5. For low uniqueness: focus on specific areas needing improvement
6. Consider the novel aspects and assumptions when giving advice
7. Never be accusatory - maintain supportive, academic tone
8. Vary the phrasing - do not repeat similar sentence structures"""


def build_overview_request(body_text: str) -> TextUnderstandingRequest:
    return TextUnderstandingRequest(
        step_name="research_overview",
        system_prompt=OVERVIEW_SYSTEM_PROMPT,
        user_content=body_text[:OVERVIEW_TEXT_CHARS],
        temperature=0.3,
        expect="object",
    )


def build_novelty_request(body_text: str) -> TextUnderstandingRequest:
    return TextUnderstandingRequest(
        step_name="novelty_analysis",
        system_prompt=NOVELTY_SYSTEM_PROMPT,
        user_content=body_text[:NOVELTY_TEXT_CHARS],
        temperature=0.3,
        expect="object",
    )


def build_assumptions_request(body_text: str) -> TextUnderstandingRequest:
    return TextUnderstandingRequest(
        step_name="identified_assumptions",
        system_prompt=ASSUMPTIONS_SYSTEM_PROMPT,
        user_content=body_text[:ASSUMPTIONS_TEXT_CHARS],
        temperature=0.3,
        expect="object",
    )


def build_similarity_request(
    body_text: str, papers: list[CandidatePaper]
) -> TextUnderstandingRequest:
    """Papers are indexed by their position in ``papers``; callers pass the
    already-truncated candidate list."""

    user_content = json.dumps(
        {
            "userText": body_text[:CLASSIFICATION_TEXT_CHARS],
            "papers": [
                {
                    "index": index,
                    "title": paper.title,
                    "abstract": paper.abstract[:CLASSIFICATION_ABSTRACT_CHARS],
                }
                for index, paper in enumerate(papers)
            ],
        },
        ensure_ascii=False,
    )
    return TextUnderstandingRequest(
        step_name="similarity_classification",
        system_prompt=SIMILARITY_SYSTEM_PROMPT,
        user_content=user_content,
        temperature=0.2,
        expect="array",
    )


def build_guidance_request(
    context: dict[str, Any], body_text: str
) -> TextUnderstandingRequest:
    target = "this paper" if context.get("uniquenessLevel") == "high" else "not this paper"
    system_prompt = GUIDANCE_SYSTEM_TEMPLATE.replace("{{high_uniqueness_target}}", target)
    user_content = json.dumps(
        {"context": context, "textSample": body_text[:GUIDANCE_SAMPLE_CHARS]},
        ensure_ascii=False,
    )
    return TextUnderstandingRequest(
        step_name="guidance",
        system_prompt=system_prompt,
        user_content=user_content,
        temperature=0.6,
        expect="array",
    )
