from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from openai import APIConnectionError

from app.embeddings.client import EmbeddingsClient
from app.errors import ServiceError
from app.llm.client import LLMClient


def connection_error():
    return APIConnectionError(request=MagicMock())


def embedding_response(*vectors):
    return SimpleNamespace(data=[SimpleNamespace(embedding=list(v)) for v in vectors])


class FakeChatStream:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def __iter__(self):
        yield from self.chunks
        if self.error is not None:
            raise self.error


def chat_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


def test_embed_texts_batches_requests():
    openai_client = MagicMock()
    openai_client.embeddings.create.side_effect = [
        embedding_response([1.0, 0.0], [0.0, 1.0]),
        embedding_response([0.5, 0.5]),
    ]
    client = EmbeddingsClient(model="m", batch_size=2, client=openai_client)

    vectors = client.embed_texts(["a", "b", "c"])

    assert vectors == [[1.0, 0.0], [0.0, 1.0], [0.5, 0.5]]
    assert openai_client.embeddings.create.call_count == 2
    openai_client.embeddings.create.assert_any_call(model="m", input=["c"])


def test_embed_text_returns_single_vector():
    openai_client = MagicMock()
    openai_client.embeddings.create.return_value = embedding_response([0.1, 0.2])

    assert EmbeddingsClient(client=openai_client).embed_text("q") == [0.1, 0.2]


def test_embedding_provider_error_becomes_service_error():
    openai_client = MagicMock()
    openai_client.embeddings.create.side_effect = connection_error()

    with pytest.raises(ServiceError):
        EmbeddingsClient(client=openai_client).embed_texts(["a"])


def test_malformed_embedding_response_is_service_error():
    openai_client = MagicMock()
    openai_client.embeddings.create.return_value = embedding_response([])

    with pytest.raises(ServiceError):
        EmbeddingsClient(client=openai_client).embed_texts(["a"])


def test_generate_stream_yields_text_deltas():
    stream = FakeChatStream([chat_chunk("Hel"), SimpleNamespace(choices=[]), chat_chunk(None), chat_chunk("lo")])
    openai_client = MagicMock()
    openai_client.chat.completions.create.return_value = stream

    fragments = list(LLMClient(model="m", client=openai_client).generate_stream("prompt"))

    assert fragments == ["Hel", "lo"]
    assert stream.closed
    kwargs = openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]


def test_generate_stream_request_failure_is_service_error():
    openai_client = MagicMock()
    openai_client.chat.completions.create.side_effect = connection_error()

    with pytest.raises(ServiceError):
        next(LLMClient(client=openai_client).generate_stream("prompt"))


def test_generate_stream_interruption_is_service_error():
    stream = FakeChatStream([chat_chunk("Hi")], error=connection_error())
    openai_client = MagicMock()
    openai_client.chat.completions.create.return_value = stream
    fragments = LLMClient(client=openai_client).generate_stream("prompt")

    assert next(fragments) == "Hi"
    with pytest.raises(ServiceError):
        next(fragments)
    assert stream.closed


def test_generate_stream_closed_transport_is_service_error():
    stream = FakeChatStream([chat_chunk("Hi")], error=httpx.StreamClosed())
    openai_client = MagicMock()
    openai_client.chat.completions.create.return_value = stream
    fragments = LLMClient(client=openai_client).generate_stream("prompt")

    assert next(fragments) == "Hi"
    with pytest.raises(ServiceError):
        next(fragments)
    assert stream.closed

def test_closing_generator_closes_provider_stream():
    stream = FakeChatStream([chat_chunk("a"), chat_chunk("b")])
    openai_client = MagicMock()
    openai_client.chat.completions.create.return_value = stream
    fragments = LLMClient(client=openai_client).generate_stream("prompt")

    next(fragments)
    fragments.close()

    assert stream.closed
