"""
OpenAI chat LLM client.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Protocol

import httpx
from openai import OpenAI, OpenAIError

from app.config import settings
from app.errors import ServiceError

DEFAULT_LLM_MODEL = settings.llm_model_name
DEFAULT_TEMPERATURE = settings.llm_temperature

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def generate_stream(self, prompt: str) -> Iterator[str]:
        ...


class LLMClient:
    def __init__(
        self,
        model: str = DEFAULT_LLM_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        self.client = client or OpenAI(api_key=api_key)

    def generate_stream(self, prompt: str) -> Iterator[str]:
        """
        Yield answer text fragments as the model produces them.

        The request is sent on the first ``next()``. Closing the generator
        closes the underlying HTTP stream.
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
            "stream": True,
        }
        try:
            stream = self.client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            logger.warning("Generation request failed", extra={"model": self.model})
            raise ServiceError("Generation request failed", {"model": self.model}) from exc

        with stream:
            try:
                for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        yield delta
            except (OpenAIError, httpx.HTTPError, httpx.StreamError) as exc:
                logger.warning("Generation stream interrupted", extra={"model": self.model})
                raise ServiceError("Generation stream interrupted", {"model": self.model}) from exc


__all__ = ["TextGenerator", "LLMClient", "DEFAULT_LLM_MODEL", "DEFAULT_TEMPERATURE"]
