"""Turn state machine: ROUTING -> (EXECUTING) -> GENERATING -> END."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import TurnTimeoutError
from ..logging_utils import session_scope
from ..skills.operation import Operation
from ..state import SessionState
from ..store import SessionStore
from .executor import OperationExecutor
from .generator import Generator
from .memory import MemoryRecorder
from .prompt import ASSISTANT_PREAMBLE, render_skills
from .router import Router
from .summarizer import Summarizer

if TYPE_CHECKING:
    from ..context import RuntimeContext


class TurnPhase(str, Enum):
    START = "start"
    ROUTING = "routing"
    EXECUTING = "executing"
    GENERATING = "generating"
    END = "end"


TRANSITIONS: dict[str, dict[TurnPhase, frozenset[TurnPhase]]] = {
    "single": {
        TurnPhase.START: frozenset({TurnPhase.ROUTING}),
        TurnPhase.ROUTING: frozenset({TurnPhase.EXECUTING, TurnPhase.GENERATING}),
        TurnPhase.EXECUTING: frozenset({TurnPhase.GENERATING}),
        TurnPhase.GENERATING: frozenset({TurnPhase.END}),
    },
    "loop": {
        TurnPhase.START: frozenset({TurnPhase.ROUTING}),
        TurnPhase.ROUTING: frozenset({TurnPhase.EXECUTING, TurnPhase.GENERATING}),
        TurnPhase.EXECUTING: frozenset({TurnPhase.ROUTING}),
        TurnPhase.GENERATING: frozenset({TurnPhase.END}),
    },
}


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one completed turn."""

    session_id: str
    response: str
    phases: list[TurnPhase]
    cycles: int
    operation_results: dict[str, str] = field(default_factory=dict)
    cycle_limit_reached: bool = False


@dataclass
class _TurnRun:
    state: SessionState
    operations: dict[str, Operation]
    instructions: str
    phases: list[TurnPhase] = field(default_factory=lambda: [TurnPhase.START])
    cycles: int = 0
    cycle_limit_reached: bool = False


class Orchestrator:
    """Drives one turn per call and serializes turns of the same session.

    With topology "loop" the router runs again after every execution batch; at
    most `max_route_cycles` batches run per turn, after which routing stops and
    the generator answers from whatever results were gathered.
    """

    def __init__(
        self,
        context: RuntimeContext,
        store: SessionStore,
        *,
        router: Router | None = None,
        executor: OperationExecutor | None = None,
        generator: Generator | None = None,
        summarizer: Summarizer | None = None,
        memory: MemoryRecorder | None = None,
    ) -> None:
        settings = context.settings
        self._context = context
        self._store = store
        self._router = router or Router(context)
        self._executor = executor or OperationExecutor(context)
        self._generator = generator or Generator(context)
        self._summarizer = summarizer
        self._memory = memory
        self._topology = settings.topology
        self._max_cycles = settings.max_route_cycles
        self._timeout = settings.turn_timeout_seconds
        self._transitions = TRANSITIONS[self._topology]
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._logger = context.component_logger("orchestrator")

    @property
    def topology(self) -> str:
        return self._topology

    @property
    def active_sessions(self) -> list[str]:
        """Sessions with a turn running or waiting."""
        return sorted(self._locks)

    def load_state(self, session_id: str) -> SessionState | None:
        return self._store.load(session_id)

    @contextlib.asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users.pop(session_id) - 1
            if remaining:
                self._lock_users[session_id] = remaining
            else:
                del self._locks[session_id]

    async def run_turn(self, session_id: str, message: str) -> TurnResult:
        """Run one turn to completion or raise `TurnTimeoutError`.

        `turn_timeout_seconds` bounds the whole turn once the session lock is
        held, post-turn steps included. Session state is written only after
        the turn completes; a timed-out turn leaves the stored history
        untouched.
        """

        async with self._session_lock(session_id):
            with session_scope(session_id):
                loop = asyncio.get_running_loop()
                deadline = loop.time() + self._timeout
                scope = asyncio.timeout_at(deadline)
                try:
                    async with scope:
                        run = await self._drive(session_id, message)
                except TimeoutError as exc:
                    if not scope.expired():
                        raise
                    self._logger.error("turn.timeout session={} timeout={}s", session_id, self._timeout)
                    raise TurnTimeoutError(session_id, self._timeout) from exc

                await self._after_turn(run.state, deadline)
                self._store.save(session_id, run.state)
                self._logger.info(
                    "turn.done session={} cycles={} phases={}",
                    session_id,
                    run.cycles,
                    "->".join(phase.value for phase in run.phases),
                )
                return TurnResult(
                    session_id=session_id,
                    response=run.state.response,
                    phases=run.phases,
                    cycles=run.cycles,
                    operation_results=dict(run.state.operation_results),
                    cycle_limit_reached=run.cycle_limit_reached,
                )

    async def _drive(self, session_id: str, message: str) -> _TurnRun:
        state = self._store.load(session_id) or SessionState()
        state.begin_turn(message)
        registry = self._context.registry
        settings = self._context.settings
        run = _TurnRun(
            state=state,
            operations=registry.operation_map(settings),
            instructions=self._instructions(),
        )

        phase = TurnPhase.ROUTING
        while True:
            self._advance(run, phase)
            if phase is TurnPhase.END:
                return run
            if phase is TurnPhase.ROUTING:
                phase = await self._route(run)
            elif phase is TurnPhase.EXECUTING:
                phase = await self._execute(run)
            else:
                state.response = await self._generator.generate(state)
                phase = TurnPhase.END

    def _advance(self, run: _TurnRun, phase: TurnPhase) -> None:
        current = run.phases[-1]
        if phase not in self._transitions.get(current, frozenset()):
            raise RuntimeError(f"invalid transition {current.value} -> {phase.value} ({self._topology})")
        run.phases.append(phase)

    async def _route(self, run: _TurnRun) -> TurnPhase:
        state = run.state
        if run.cycles >= self._max_cycles:
            run.cycle_limit_reached = True
            state.needs_operations = False
            state.selected_operations = []
            self._logger.warning("turn.cycle_limit max_route_cycles={}", self._max_cycles)
            return TurnPhase.GENERATING

        route = await self._router.route(state, list(run.operations.values()), run.instructions)
        state.needs_operations = route.needs_operations
        state.selected_operations = list(route.selected_operations)
        return TurnPhase.EXECUTING if route.needs_operations else TurnPhase.GENERATING

    async def _execute(self, run: _TurnRun) -> TurnPhase:
        state = run.state
        run.cycles += 1
        results = await self._executor.execute(
            state.selected_operations,
            run.operations,
            start_index=len(state.operation_results),
        )
        state.merge_results(results)
        if self._topology == "loop":
            return TurnPhase.ROUTING
        return TurnPhase.GENERATING

    def _instructions(self) -> str:
        registry = self._context.registry
        settings = self._context.settings
        preamble = ASSISTANT_PREAMBLE.format(skills=render_skills(registry.skills_index(settings)) or "(none)")
        combined = registry.combined_instructions(settings)
        if not combined:
            return preamble
        return f"{preamble}\n\n{combined}"

    async def _after_turn(self, state: SessionState, deadline: float) -> None:
        steps: list[tuple[str, Callable[[SessionState], Awaitable[object]]]] = []
        if self._memory is not None:
            steps.append(("memory", self._memory.record))
        if self._summarizer is not None:
            steps.append(("compaction", self._summarizer.compact))

        loop = asyncio.get_running_loop()
        for name, step in steps:
            if loop.time() >= deadline:
                self._logger.warning("turn.{}.skipped reason=deadline", name)
                continue
            try:
                async with asyncio.timeout_at(deadline):
                    await step(state)
            except Exception:
                self._logger.opt(exception=True).warning("turn.{}.failed", name)
