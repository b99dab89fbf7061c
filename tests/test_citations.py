import pytest

from app.rag.citations import CitationScanner, ScanState, parse_citation_list


def scan(fragments, max_pending_chars=200):
    scanner = CitationScanner(max_pending_chars=max_pending_chars)
    emitted = [scanner.feed(fragment) for fragment in fragments]
    emitted.append(scanner.finish())
    return scanner, "".join(emitted)


def test_marker_split_across_fragments():
    scanner, text = scan(["The answer is 42. Citat", "ions: [1, 2]"])

    assert scanner.citations == [1, 2]
    assert "Citations:" not in text
    assert text == "The answer is 42."
    assert scanner.state is ScanState.DONE


@pytest.mark.parametrize(
    "fragments",
    [
        ["Answer text.\nCitations: [3, 5]"],
        ["Answer text.\n", "Citations: [3, 5]"],
        ["Answer text.\nC", "itations: [", "3, ", "5", "]"],
        list("Answer text.\nCitations: [3, 5]"),
    ],
)
def test_marker_detected_at_any_split_point(fragments):
    scanner, text = scan(fragments)

    assert scanner.citations == [3, 5]
    assert text == "Answer text."


def test_text_before_partial_marker_is_released_early():
    scanner = CitationScanner()

    assert scanner.feed("Page two says hello. Cit") == "Page two says hello."
    assert scanner.pending == " Cit"


def test_false_prefix_is_released_once_disproved():
    scanner = CitationScanner()

    assert scanner.feed("Ask the Ci") == "Ask the"
    assert scanner.feed("ty council.") == " City council."
    assert scanner.citations == []


def test_unclosed_marker_is_released_after_pending_limit():
    scanner = CitationScanner(max_pending_chars=20)

    assert scanner.feed("Note Citations: are") == "Note"
    released = scanner.feed(" discussed at length in chapter four.")

    assert released == " Citations: are discussed at length in chapter four."
    assert scanner.citations == []


def test_trailing_whitespace_is_held_until_next_fragment():
    scanner = CitationScanner()

    assert scanner.feed("Line one.\n") == "Line one."
    assert scanner.feed("Line two.") == "\nLine two."


def test_marker_without_closing_bracket_at_end_of_stream():
    scanner, text = scan(["Done.", " Citations: [4, 6"])

    assert scanner.citations == [4, 6]
    assert text == "Done."


def test_text_after_marker_is_kept():
    scanner, text = scan(["Citations: [1] trailing"])

    assert scanner.citations == [1]
    assert text == " trailing"


def test_latest_marker_wins():
    scanner, _ = scan(["A. Citations: [1]", " B. Citations: [2, 3]"])
    assert scanner.citations == [2, 3]


def test_no_marker_leaves_citations_empty():
    scanner, text = scan(["Plain ", "answer."])

    assert scanner.citations == []
    assert scanner.state is ScanState.DONE
    assert text == "Plain answer."


def test_state_moves_to_matched_on_marker():
    scanner = CitationScanner()
    scanner.feed("x Citations: [1]")
    assert scanner.state is ScanState.MATCHED


def test_feed_after_finish_is_an_error():
    scanner = CitationScanner()
    scanner.finish()
    with pytest.raises(RuntimeError):
        scanner.feed("late")


def test_parse_citation_list_ignores_junk():
    assert parse_citation_list("1, two, 3, , 3, -4, 0, 7 ") == [1, 3, 7]
