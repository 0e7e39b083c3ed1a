from originalitycheck.highlighting import build_highlighted_segments
from originalitycheck.models import SimilarityMatch


def _match(quote, is_referenced=False, title="Paper"):
    return SimilarityMatch(
        paper_title=title,
        paper_source="arXiv",
        paper_url="",
        matched_text_user=quote,
        matched_text_paper="concept",
        similarity_percentage=55.0,
        is_referenced=is_referenced,
    )


def _joined(segments):
    return "".join(segment.text for segment in segments)


def test_no_matches_yield_single_unique_segment():
    segments = build_highlighted_segments("ABC DEF GHI", [])

    assert [(s.text, s.type) for s in segments] == [("ABC DEF GHI", "unique")]


def test_single_match_preserves_exact_boundaries():
    segments = build_highlighted_segments("ABC DEF GHI", [_match("DEF")])

    assert [(s.text, s.type) for s in segments] == [
        ("ABC ", "unique"),
        ("DEF", "unreferenced"),
        (" GHI", "unique"),
    ]
    assert segments[1].match_info.paper_title == "Paper"
    assert segments[1].match_info.is_referenced is False
    assert segments[0].match_info is None


def test_matches_are_ordered_by_position_not_input_order():
    text = "alpha beta gamma delta"
    matches = [_match("delta", is_referenced=True), _match("alpha")]

    segments = build_highlighted_segments(text, matches)

    assert [(s.text, s.type) for s in segments] == [
        ("alpha", "unreferenced"),
        (" beta gamma ", "unique"),
        ("delta", "referenced"),
    ]


def test_missing_quotes_are_skipped():
    text = "one two three"

    segments = build_highlighted_segments(text, [_match("four"), _match("two")])

    assert _joined(segments) == text
    assert [s.type for s in segments] == ["unique", "unreferenced", "unique"]


def test_overlapping_and_duplicate_quotes_place_only_first():
    text = "shared phrase appears once"
    matches = [
        _match("shared phrase", title="First"),
        _match("shared phrase", title="Second"),
        _match("phrase appears", title="Overlap"),
    ]

    segments = build_highlighted_segments(text, matches)

    highlighted = [s for s in segments if s.type != "unique"]
    assert [s.match_info.paper_title for s in highlighted] == ["First"]
    assert _joined(segments) == text


def test_repeated_quote_moves_forward_to_next_occurrence():
    text = "echo and echo"

    segments = build_highlighted_segments(text, [_match("echo"), _match("echo")])

    assert [(s.text, s.type) for s in segments] == [
        ("echo", "unreferenced"),
        (" and ", "unique"),
        ("echo", "unreferenced"),
    ]


def test_round_trip_holds_for_assorted_inputs():
    cases = [
        ("", [_match("x")]),
        ("", []),
        ("abc", [_match("abc")]),
        ("a\nb\nc", [_match("\nb"), _match("c"), _match("")]),
        ("start middle end", [_match("end"), _match("start"), _match("zzz")]),
    ]
    for text, matches in cases:
        assert _joined(build_highlighted_segments(text, matches)) == text
