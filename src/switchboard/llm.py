"""Language-model client contract and the Republic-backed implementation."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError
from republic import LLM

from .config import Settings
from .errors import StructuredOutputError
from .state import Message

SchemaT = TypeVar("SchemaT", bound=BaseModel)
DEFAULT_HEADERS = {"X-Title": "Switchboard"}
STRUCTURED_OUTPUT_DIRECTIVE = (
    "Respond with a single JSON object and nothing else. "
    "It must validate against this JSON schema:\n{schema}"
)


class LanguageModel(Protocol):
    """What the router, generator and post-turn steps need from a model."""

    async def invoke(self, messages: Sequence[Message]) -> Message: ...

    async def invoke_structured(self, messages: Sequence[Message], schema: type[SchemaT]) -> SchemaT: ...


def structured_directive(schema: type[BaseModel]) -> Message:
    rendered = json.dumps(schema.model_json_schema(), ensure_ascii=False)
    return Message(role="system", content=STRUCTURED_OUTPUT_DIRECTIVE.format(schema=rendered))


def decode_structured(raw: str, schema: type[SchemaT]) -> SchemaT:
    """Coerce model text into `schema`, tolerating code fences and chatter."""

    text = raw.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise StructuredOutputError(schema.__name__, raw, "no JSON object in model output")
    try:
        return schema.model_validate_json(text[start : end + 1])
    except ValidationError as exc:
        raise StructuredOutputError(schema.__name__, raw, str(exc)) from exc


class RepublicLanguageModel:
    """LLM wrapper returning one assistant message per call."""

    def __init__(self, settings: Settings, *, llm: LLM | None = None) -> None:
        self._settings = settings
        self._max_tokens = settings.max_tokens
        self._llm = llm or LLM(
            settings.model,
            api_key=settings.api_key,
            api_base=settings.api_base,
        )

    @property
    def model(self) -> str:
        return self._settings.model

    async def invoke(self, messages: Sequence[Message]) -> Message:
        payload = [message.to_payload() for message in messages]
        response = await asyncio.to_thread(
            self._llm.chat.raw,
            messages=payload,
            max_tokens=self._max_tokens,
            extra_headers=DEFAULT_HEADERS,
        )
        text = _extract_text(response)
        logger.debug("llm.invoke model={} messages={} chars={}", self.model, len(payload), len(text))
        return Message(role="assistant", content=text)

    async def invoke_structured(self, messages: Sequence[Message], schema: type[SchemaT]) -> SchemaT:
        reply = await self.invoke([*messages, structured_directive(schema)])
        return decode_structured(reply.content, schema)


def _extract_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    if message is None:
        return ""
    content = getattr(message, "content", "") or ""
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)
