import json

from originalitycheck.guidance import (
    HIGH_UNIQUENESS_MESSAGE,
    MEDIUM_UNIQUENESS_MESSAGE,
    REWRITE_MESSAGE,
    GuidanceGenerator,
    build_guidance_context,
    deduplicate_suggestions,
    fallback_guidance,
)
from originalitycheck.models import (
    Assumption,
    GuidanceSuggestion,
    IdentifiedAssumptions,
    NoveltyAnalysis,
    ScoreResult,
    SimilarityMatch,
)
from originalitycheck.scoring import aggregate_score


class FakeTextUnderstanding:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        return self.payload


def _match(section, is_referenced=False, similarity=60.0, title="Paper"):
    return SimilarityMatch(
        paper_title=title,
        paper_source="arXiv",
        paper_url="",
        matched_text_user="quote",
        matched_text_paper="concept",
        similarity_percentage=similarity,
        is_referenced=is_referenced,
        section_name=section,
    )


def _generate(payload, matches, body="body text"):
    generator = GuidanceGenerator(FakeTextUnderstanding(payload))
    return generator.generate(
        body, matches, aggregate_score(matches), NoveltyAnalysis(), IdentifiedAssumptions()
    )


def test_generated_suggestions_are_filtered_and_deduplicated():
    payload = [
        {"type": "positive", "message": "Strong framing of the problem."},
        {"type": "citation", "section": "Methodology", "message": "Cite the GAT paper."},
        {"type": "citation", "message": "cite the gat paper."},
        {"type": "rewrite"},
        {"message": "No type"},
        {"type": "praise", "message": "Unknown type"},
    ]

    suggestions = _generate(payload, [_match("Methodology")])

    assert [s.message for s in suggestions] == [
        "Strong framing of the problem.",
        "Cite the GAT paper.",
    ]
    assert suggestions[1].section == "Methodology"


def test_generated_suggestions_are_capped_at_six():
    payload = [{"type": "positive", "message": f"Point {i}"} for i in range(9)]

    assert len(_generate(payload, [])) == 6


def test_too_few_valid_suggestions_fall_back_to_rules():
    payload = [
        {"type": "positive", "message": "Same"},
        {"type": "positive", "message": "SAME"},
    ]

    suggestions = _generate(payload, [])

    assert [s.message for s in suggestions] == [HIGH_UNIQUENESS_MESSAGE]


def test_unavailable_service_falls_back_to_rules():
    matches = [
        _match("Introduction", similarity=45),
        _match("Methodology", similarity=45),
        _match("Methodology", similarity=45),
        _match("Unknown", similarity=45),
        _match("Results", is_referenced=True),
    ]

    suggestions = _generate(None, matches)

    assert [s.type for s in suggestions] == ["positive", "citation", "citation", "rewrite", "positive"]
    assert suggestions[0].message == MEDIUM_UNIQUENESS_MESSAGE
    assert suggestions[1].section == "Methodology"
    assert suggestions[2].section == "Introduction"
    assert "methodology section" in suggestions[1].message
    assert suggestions[3].message == REWRITE_MESSAGE
    assert suggestions[4].message.startswith("1 similar passage is properly attributed")


def test_fallback_low_uniqueness_has_no_positive_opening():
    matches = [_match("Discussion", similarity=90)] + [
        _match("Results", is_referenced=True) for _ in range(2)
    ]

    suggestions = fallback_guidance(matches, aggregate_score(matches))

    assert [s.type for s in suggestions] == ["citation", "rewrite", "positive"]
    assert suggestions[-1].message.startswith("2 similar passages are properly attributed")


def test_fallback_never_repeats_messages_for_case_variant_sections():
    matches = [_match("Methods"), _match("methods")]

    suggestions = fallback_guidance(matches, ScoreResult(60.0, "low"))

    messages = [s.message.lower() for s in suggestions]
    assert len(messages) == len(set(messages))
    assert [s.type for s in suggestions] == ["citation", "rewrite"]


def test_deduplicate_keeps_first_occurrence():
    suggestions = [
        GuidanceSuggestion(type="positive", message="Good"),
        GuidanceSuggestion(type="rewrite", message="good"),
    ]

    assert deduplicate_suggestions(suggestions) == [suggestions[0]]


def test_context_summarizes_without_raw_matches():
    matches = [
        _match("Introduction"),
        _match("Introduction"),
        _match("Results", is_referenced=True),
    ]
    novelty = NoveltyAnalysis(novel_aspects=("a", "b", "c", "d"))
    assumptions = IdentifiedAssumptions(
        assumptions=(
            Assumption("Data exists", "Data Availability"),
            Assumption("More data exists", "Data Availability"),
            Assumption("It scales", "Scalability"),
        )
    )

    context = build_guidance_context(matches, ScoreResult(59.6, "low"), novelty, assumptions)

    assert context == {
        "overallScore": 60,
        "uniquenessLevel": "low",
        "unreferencedMatchCount": 2,
        "referencedMatchCount": 1,
        "affectedSections": ["Introduction"],
        "novelAspects": ["a", "b", "c"],
        "hasAssumptions": True,
        "assumptionCategories": ["Data Availability", "Scalability"],
    }


def test_request_carries_context_and_text_sample():
    client = FakeTextUnderstanding(None)
    GuidanceGenerator(client).generate(
        "z" * 4000, [], ScoreResult(0.0, "high"), NoveltyAnalysis(), IdentifiedAssumptions()
    )

    request = client.requests[0]
    content = json.loads(request.user_content)
    assert request.temperature == 0.6
    assert request.expect == "array"
    assert len(content["textSample"]) == 1500
    assert content["context"]["uniquenessLevel"] == "high"
    assert "For high uniqueness (this paper)" in request.system_prompt
