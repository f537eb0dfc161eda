"""Interactive query session: debounced search and on-demand AI answers."""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Set

from docseek.answer.synthesizer import AnswerSynthesizer, ContextItem
from docseek.errors import PartialStreamError, RetrievalError, SynthesisError
from docseek.index.search import Searcher, SearchResult

LOGGER = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred while searching. Please try again."
DEFAULT_DEBOUNCE_SECONDS = 0.3


class SearchPhase(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    RESULTS = "results"
    EMPTY = "empty"
    ERROR = "error"


class AnswerPhase(str, Enum):
    NONE = "none"
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"


@dataclass
class QueryState:
    query: str = ""
    debounced_query: str = ""
    results: List[SearchResult] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    answer: Optional[str] = None
    answer_loading: bool = False
    answer_error: Optional[str] = None
    phase: SearchPhase = SearchPhase.IDLE
    answer_phase: AnswerPhase = AnswerPhase.NONE


class QueryController:
    """Drives one search session on the running event loop.

    Every search and every answer is tagged with a sequence number; a response
    only touches the state if its number is still the latest one issued, so a
    slow reply for an old query can never overwrite a newer one.
    """

    def __init__(
        self,
        searcher: Searcher,
        synthesizer: AnswerSynthesizer | None = None,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        navigate: Callable[[str], None] | None = None,
        on_change: Callable[[QueryState], None] | None = None,
    ) -> None:
        self.searcher = searcher
        self.synthesizer = synthesizer
        self.debounce_seconds = debounce_seconds
        self.navigate = navigate
        self.on_change = on_change
        self.state = QueryState()
        self._debounce_task: asyncio.Task | None = None
        self._tasks: Set[asyncio.Task] = set()
        self._search_seq = 0
        self._answer_seq = 0

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    def _reset_answer(self) -> None:
        self._answer_seq += 1
        state = self.state
        state.answer = None
        state.answer_loading = False
        state.answer_error = None
        state.answer_phase = AnswerPhase.NONE

    def set_query(self, text: str) -> None:
        """Handle an input edit. Must be called from within the event loop."""
        if text == self.state.query:
            return

        state = self.state
        state.query = text
        self._reset_answer()
        self._cancel_debounce()
        # Any search still in flight answers an older query now.
        self._search_seq += 1
        state.loading = False

        if not text.strip():
            state.debounced_query = text
            state.results = []
            state.error = None
            state.phase = SearchPhase.EMPTY
            self._notify()
            return

        state.phase = SearchPhase.DEBOUNCING
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounce(text))
        self._notify()

    async def _debounce(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._debounce_task = None
        self._spawn(self._search(text))

    async def _search(self, text: str) -> None:
        self._search_seq += 1
        seq = self._search_seq
        state = self.state
        state.debounced_query = text
        state.loading = True
        state.error = None
        state.phase = SearchPhase.SEARCHING
        self._notify()

        try:
            results = await self.searcher.query(text)
        except RetrievalError as exc:
            if seq != self._search_seq:
                return
            LOGGER.error("Search error: %s", exc)
            state.results = []
            state.error = GENERIC_ERROR
            state.phase = SearchPhase.ERROR
        else:
            if seq != self._search_seq:
                LOGGER.debug("Discarding stale results for %r", text)
                return
            state.results = results
            state.phase = SearchPhase.RESULTS if results else SearchPhase.EMPTY
        state.loading = False
        self._notify()

    async def ask(self) -> None:
        """Stream an AI answer grounded in the current results.

        Does nothing unless results are showing and no answer is pending,
        streaming, or complete for them.
        """
        state = self.state
        if (
            self.synthesizer is None
            or state.phase is not SearchPhase.RESULTS
            or state.answer_phase is not AnswerPhase.NONE
        ):
            return

        seq = self._answer_seq
        question = state.query
        context = [
            ContextItem(content=result.data, metadata=result.metadata.to_dict())
            for result in state.results
        ]
        state.answer = None
        state.answer_error = None
        state.error = None
        state.answer_loading = True
        state.answer_phase = AnswerPhase.PENDING
        self._notify()

        try:
            async with aclosing(self.synthesizer.stream(question, context)) as stream:
                async for piece in stream:
                    if seq != self._answer_seq:
                        return
                    if state.answer_phase is AnswerPhase.PENDING:
                        state.answer_phase = AnswerPhase.STREAMING
                        state.answer = ""
                    state.answer += piece
                    self._notify()
        except PartialStreamError as exc:
            if seq != self._answer_seq:
                return
            LOGGER.error("AI answer interrupted: %s", exc)
            state.answer = exc.partial
            state.answer_error = GENERIC_ERROR
        except SynthesisError as exc:
            if seq != self._answer_seq:
                return
            LOGGER.error("AI answer failed: %s", exc)
            state.error = GENERIC_ERROR
            state.answer_loading = False
            state.answer_phase = AnswerPhase.NONE
            self._notify()
            return

        if seq != self._answer_seq:
            return
        state.answer_loading = False
        state.answer_phase = AnswerPhase.COMPLETE
        self._notify()

    def select(self, result: SearchResult) -> str:
        """Navigate to a result and end the session."""
        route = result.route
        if self.navigate is not None:
            self.navigate(route)
        self.clear()
        return route

    def clear(self) -> None:
        """Drop all session state and return to idle."""
        self._cancel_debounce()
        self._search_seq += 1
        self._answer_seq += 1
        self.state = QueryState()
        self._notify()

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or search is outstanding."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if self._debounce_task is not None and not self._debounce_task.done():
                pending.append(self._debounce_task)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        self._cancel_debounce()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
