"""Grounded answer generation over retrieved sections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Sequence

from openai import AsyncOpenAI, OpenAIError

from docseek.config import DEFAULT_CHAT_MODEL
from docseek.errors import ConfigurationError, PartialStreamError, SynthesisError

LOGGER = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, I could not generate a response."

SYSTEM_PROMPT = (
    "You are an assistant that turns documentation into clear, actionable "
    "instructions. Give direct recommendations and practical steps. Never "
    "mention the documentation or the context you were given; tell the user "
    "what to do or explain how things work."
)


@dataclass(slots=True)
class SynthesisConfig:
    model: str = DEFAULT_CHAT_MODEL
    max_tokens: int = 500
    temperature: float = 0.7


@dataclass(slots=True)
class ContextItem:
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.metadata.get("title") or self.metadata.get("fileName") or "")


def build_grounding_block(context: Sequence[ContextItem]) -> str:
    """Join context items, in caller order, as ``title:\\ncontent`` blocks."""
    return "\n".join(f"{item.title}:\n{item.content}\n" for item in context)


def build_messages(question: str, context: Sequence[ContextItem]) -> List[Mapping[str, str]]:
    grounding = build_grounding_block(context)
    prompt = (
        "Answer the question using the material below. Be clear and concise and "
        "give actionable directions. Do not refer to the material itself "
        '(for example, do not say "the context shows that..."); state what should '
        f'be done instead.\nQuestion: "{question}"\n\nMaterial:\n{grounding}'
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


class AnswerSynthesizer:
    """Produces an answer either in one piece (``answer``) or incrementally (``stream``)."""

    def __init__(self, client: Any, config: SynthesisConfig | None = None) -> None:
        self.client = client
        self.config = config or SynthesisConfig()

    @classmethod
    def from_api_key(cls, api_key: str | None, config: SynthesisConfig | None = None) -> "AnswerSynthesizer":
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for AI answers")
        return cls(AsyncOpenAI(api_key=api_key), config)

    def _request(self, question: str, context: Sequence[ContextItem], *, stream: bool) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": build_messages(question, context),
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "stream": stream,
        }

    async def answer(self, question: str, context: Sequence[ContextItem]) -> str:
        try:
            completion = await self.client.chat.completions.create(
                **self._request(question, context, stream=False)
            )
        except OpenAIError as exc:
            LOGGER.error("AI chat error: %s", exc)
            raise SynthesisError("Failed to get AI response") from exc

        content = completion.choices[0].message.content if completion.choices else None
        return content or FALLBACK_ANSWER

    async def stream(self, question: str, context: Sequence[ContextItem]) -> AsyncIterator[str]:
        """Yield answer text increments in the order the model produces them.

        Raises ``SynthesisError`` if nothing was produced yet, or
        ``PartialStreamError`` carrying the delivered text otherwise. A stream
        that completes without any text yields the fallback answer once.
        """
        delivered: List[str] = []
        try:
            response = await self.client.chat.completions.create(
                **self._request(question, context, stream=True)
            )
        except OpenAIError as exc:
            LOGGER.error("AI chat error: %s", exc)
            raise SynthesisError("Failed to get AI response") from exc

        # The response is closed even when the consumer stops early.
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    delivered.append(text)
                    yield text
        except OpenAIError as exc:
            LOGGER.error("AI chat stream error after %d chunks: %s", len(delivered), exc)
            if delivered:
                raise PartialStreamError("AI response interrupted", "".join(delivered)) from exc
            raise SynthesisError("Failed to get AI response") from exc
        finally:
            await response.close()

        if not delivered:
            yield FALLBACK_ANSWER

    async def aclose(self) -> None:
        """Release the underlying client's connection pool."""
        await self.client.close()
