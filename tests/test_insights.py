from originalitycheck.insights import (
    FALLBACK_NOVELTY,
    FALLBACK_OVERVIEW,
    analyze_novelty,
    extract_research_overview,
    identify_assumptions,
)


class FakeTextUnderstanding:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        return self.payload


def test_overview_uses_payload_and_fills_missing_keys():
    client = FakeTextUnderstanding(
        {"problem_summary": "Detecting drift.", "methodology": "  Kalman filters ", "domain": 7}
    )

    overview = extract_research_overview(client, "body " * 2000)

    assert overview.problem_summary == "Detecting drift."
    assert overview.methodology == "Kalman filters"
    assert overview.contribution == FALLBACK_OVERVIEW.contribution
    assert overview.domain == "Unknown"
    request = client.requests[0]
    assert request.step_name == "research_overview"
    assert len(request.user_content) == 4000
    assert request.temperature == 0.3


def test_overview_falls_back_when_unavailable():
    assert extract_research_overview(FakeTextUnderstanding(None), "body") == FALLBACK_OVERVIEW


def test_novelty_caps_aspects_and_ignores_non_strings():
    client = FakeTextUnderstanding(
        {
            "novel_aspects": ["a", "", 3, "b", "c", "d", "e", "f"],
            "contrast_with_existing": "Differs.",
            "summary": "Novel.",
        }
    )

    novelty = analyze_novelty(client, "body")

    assert novelty.novel_aspects == ("a", "b", "c", "d", "e")
    assert novelty.contrast_with_existing == "Differs."
    assert novelty.summary == "Novel."


def test_novelty_falls_back_on_wrong_shape():
    assert analyze_novelty(FakeTextUnderstanding(["not", "an", "object"]), "body") == FALLBACK_NOVELTY


def test_assumptions_are_validated_and_capped():
    items = [{"statement": f"Assumes {i}", "category": "Scalability"} for i in range(10)]
    items.insert(0, {"category": "Other"})
    items.insert(1, {"statement": "No category given"})
    client = FakeTextUnderstanding({"assumptions": items})

    result = identify_assumptions(client, "body")

    assert len(result.assumptions) == 8
    assert result.assumptions[0].statement == "No category given"
    assert result.assumptions[0].category == "Other"
    assert result.to_dict()["assumptions"][1] == {
        "statement": "Assumes 0",
        "category": "Scalability",
    }


def test_assumptions_empty_when_payload_missing_list():
    assert identify_assumptions(FakeTextUnderstanding({"assumptions": "none"}), "body").assumptions == ()
    assert identify_assumptions(FakeTextUnderstanding(None), "body").assumptions == ()
