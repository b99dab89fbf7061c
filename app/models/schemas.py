from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Models exchanged with the browser client use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Upload
class UploadResponse(CamelModel):
    pdf_id: str = Field(..., description="Identifier to pass to /ask")
    file_url: str = Field(..., description="Where the uploaded PDF is served")


# Ask
class AskRequest(CamelModel):
    pdf_id: str = Field(default="", description="Identifier returned by /upload")
    question: str = Field(default="", description="User question")


class StreamEventType(str, Enum):
    DELTA = "delta"
    ERROR = "error"
    DONE = "done"


class StreamEvent(CamelModel):
    """
    One frame of the answer stream.

    ``delta`` frames carry new answer text and the citations known so far;
    the stream always ends with exactly one ``done`` or ``error`` frame.
    """

    event: StreamEventType
    text_delta: str = ""
    citations: List[int] = Field(default_factory=list)
    context_pages: List[int] | None = None
    error: str | None = None

    @classmethod
    def delta(cls, text: str, citations: List[int]) -> "StreamEvent":
        return cls(event=StreamEventType.DELTA, text_delta=text, citations=list(citations))

    @classmethod
    def done(cls, citations: List[int], context_pages: List[int]) -> "StreamEvent":
        return cls(event=StreamEventType.DONE, citations=list(citations), context_pages=list(context_pages))

    @classmethod
    def failed(cls, message: str, citations: List[int]) -> "StreamEvent":
        return cls(event=StreamEventType.ERROR, citations=list(citations), error=message)

    def to_sse(self) -> str:
        """Format as SSE: ``event: <type>`` / ``data: <json>`` / blank line."""
        data = self.model_dump_json(by_alias=True, exclude={"event"}, exclude_none=True)
        return f"event: {self.event.value}\ndata: {data}\n\n"


__all__ = [
    "UploadResponse",
    "AskRequest",
    "StreamEventType",
    "StreamEvent",
]
