import pytest

from conftest import FakeGenerator

from app.errors import QueryFailedError
from app.models.schemas import StreamEventType
from app.rag.ranker import RankedChunk
from app.rag.streamer import AnswerStreamer, StreamState, build_prompt
from app.vector_store.base import ChunkRecord


def context():
    return [
        RankedChunk(record=ChunkRecord(text="Revenue grew 10%.", page_number=2, embedding=[1.0]), score=0.9),
        RankedChunk(record=ChunkRecord(text="Risk is low.", page_number=5, embedding=[1.0]), score=0.5),
        RankedChunk(record=ChunkRecord(text="More on revenue.", page_number=2, embedding=[1.0]), score=0.4),
    ]


def collect(stream):
    return list(stream)


def test_prompt_contains_instructions_pages_and_question():
    prompt = build_prompt("How did revenue change?", context())

    assert "Answer only from the context" in prompt
    assert "[Page 2]\nRevenue grew 10%." in prompt
    assert "[Page 5]\nRisk is low." in prompt
    assert "Question: How did revenue change?" in prompt
    assert prompt.rstrip().endswith("listing the page numbers you used.")
    assert "Citations: [n, n, ...]" in prompt


def test_stream_parses_split_marker_and_hides_it():
    generator = FakeGenerator(["The answer is 42. Citat", "ions: [1, 2]"])
    stream = AnswerStreamer(generator).open("What is it?", context())

    events = collect(stream)

    text = "".join(e.text_delta for e in events if e.event is StreamEventType.DELTA)
    assert "Citations:" not in text
    assert text == "The answer is 42."
    assert events[-1].event is StreamEventType.DONE
    assert events[-1].citations == [1, 2]
    assert events[-1].context_pages == [2, 5]
    assert stream.state is StreamState.DONE


def test_citations_are_empty_until_marker_seen():
    generator = FakeGenerator(["Revenue ", "grew. ", "Citations: [2]", ""])
    events = collect(AnswerStreamer(generator).open("q", context()))

    deltas = [e for e in events if e.event is StreamEventType.DELTA]
    assert deltas[0].citations == []
    assert deltas[-1].citations == [2]
    assert events[-1].citations == [2]


def test_generation_failure_before_first_fragment_raises_query_failed():
    generator = FakeGenerator(["never"], fail_at=0)

    with pytest.raises(QueryFailedError):
        AnswerStreamer(generator).open("q", context())


def test_mid_stream_failure_keeps_text_and_ends_with_error_event():
    generator = FakeGenerator(["Partial ", "answer", " lost"], fail_at=2)
    stream = AnswerStreamer(generator).open("q", context())

    events = collect(stream)

    text = "".join(e.text_delta for e in events if e.event is StreamEventType.DELTA)
    assert text == "Partial answer"
    assert events[-1].event is StreamEventType.ERROR
    assert events[-1].error
    assert [e.event for e in events].count(StreamEventType.DONE) == 0
    assert generator.closed


def test_closing_stream_early_closes_upstream():
    generator = FakeGenerator(["one ", "two ", "three ", "four"])
    events = iter(AnswerStreamer(generator).open("q", context()))

    next(events)
    events.close()

    assert generator.closed
    assert generator.produced < 4


def test_empty_generation_still_completes():
    events = collect(AnswerStreamer(FakeGenerator([])).open("q", context()))

    assert [e.event for e in events] == [StreamEventType.DONE]
    assert events[0].citations == []


def test_sse_frame_format():
    events = collect(AnswerStreamer(FakeGenerator(["Hi. Citations: [5]"])).open("q", context()))

    assert events[0].to_sse() == 'event: delta\ndata: {"textDelta":"Hi.","citations":[5]}\n\n'
    assert events[-1].to_sse() == 'event: done\ndata: {"textDelta":"","citations":[5],"contextPages":[2,5]}\n\n'
