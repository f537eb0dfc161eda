"""FastAPI application exposing retrieval and answer endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from docseek.answer.synthesizer import AnswerSynthesizer, ContextItem, SynthesisConfig
from docseek.config import AppConfig
from docseek.errors import ConfigurationError, PartialStreamError, RetrievalError, SynthesisError
from docseek.index.backends import open_vector_index
from docseek.index.search import Searcher

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="docseek", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class QueryPayload(BaseModel):
    query: str


class ContextPayload(BaseModel):
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AskPayload(BaseModel):
    question: str
    context: List[ContextPayload] = Field(default_factory=list)
    stream: bool = False


def _load_config() -> AppConfig:
    return AppConfig.from_env()


def _sse(payload: Dict[str, Any], event: str | None = None) -> str:
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {json.dumps(payload)}\n\n"


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/api/query-index")
async def query_index(payload: QueryPayload) -> List[Dict[str, Any]]:
    try:
        config = _load_config()
        index = open_vector_index(config)
    except ConfigurationError as exc:
        LOGGER.error("Search setup error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to perform search") from exc

    searcher = Searcher(index, namespace=config.namespace, top_k=config.top_k)
    try:
        results = await searcher.query(payload.query)
    except RetrievalError as exc:
        raise HTTPException(status_code=500, detail="Failed to perform search") from exc
    finally:
        await index.aclose()
    return [result.to_dict() for result in results]


async def _stream_answer(
    synthesizer: AnswerSynthesizer, first: str | None, stream: AsyncIterator[str]
) -> AsyncIterator[str]:
    try:
        if first is not None:
            yield _sse({"text": first})
        async for piece in stream:
            yield _sse({"text": piece})
    except PartialStreamError as exc:
        yield _sse({"error": "AI response interrupted", "partial": len(exc.partial)}, event="error")
    finally:
        await stream.aclose()
        await synthesizer.aclose()


@app.post("/api/ask-ai")
async def ask_ai(payload: AskPayload):
    try:
        config = _load_config()
        synthesizer = AnswerSynthesizer.from_api_key(
            config.openai_api_key,
            SynthesisConfig(
                model=config.chat_model,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
            ),
        )
    except ConfigurationError as exc:
        LOGGER.error("AI chat setup error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to get AI response") from exc

    context = [ContextItem(content=item.content, metadata=item.metadata) for item in payload.context]

    if not payload.stream:
        try:
            response = await synthesizer.answer(payload.question, context)
        except SynthesisError as exc:
            raise HTTPException(status_code=500, detail="Failed to get AI response") from exc
        finally:
            await synthesizer.aclose()
        return {"response": response}

    # Pull the first increment before committing to a 200 response.
    stream = synthesizer.stream(payload.question, context)
    try:
        first = await stream.__anext__()
    except StopAsyncIteration:
        first = None
    except SynthesisError as exc:
        await synthesizer.aclose()
        raise HTTPException(status_code=500, detail="Failed to get AI response") from exc

    return StreamingResponse(
        _stream_answer(synthesizer, first, stream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
