"""Assistant facade: wires settings, skills, model, store and engine together."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from .config import Settings
from .context import RuntimeContext
from .core import Generator, MemoryRecorder, OperationExecutor, Orchestrator, Router, Summarizer, TurnResult
from .llm import LanguageModel, RepublicLanguageModel
from .profile import ProfileStore
from .skills import SkillIndexEntry, SkillRegistry, build_registry, create_skill_access_skill
from .store import FileSessionStore, InMemorySessionStore, SessionStore

DEFAULT_SESSION_ID = "default"


def build_session_store(settings: Settings) -> SessionStore:
    if settings.session_store == "file":
        return FileSessionStore(settings.sessions_dir)
    return InMemorySessionStore()


class Assistant:
    """One assistant instance serving any number of sessions."""

    def __init__(
        self,
        settings: Settings,
        *,
        llm: LanguageModel | None = None,
        store: SessionStore | None = None,
        registry: SkillRegistry | None = None,
        plugins: Iterable[object] = (),
        include_entry_points: bool = True,
    ) -> None:
        self.settings = settings
        if registry is None:
            registry = build_registry(settings, plugins=plugins, include_entry_points=include_entry_points)
        if not registry.has("skill-access"):
            registry.register(create_skill_access_skill(registry))
        # Surface duplicate operation names at startup rather than on the first turn.
        registry.operation_map(settings)

        self.registry = registry
        self.context = RuntimeContext(
            settings=settings,
            registry=registry,
            llm=llm if llm is not None else RepublicLanguageModel(settings),
        )
        self.store = store if store is not None else build_session_store(settings)
        self.orchestrator = Orchestrator(
            self.context,
            self.store,
            router=Router(self.context),
            executor=OperationExecutor(self.context),
            generator=Generator(self.context),
            summarizer=Summarizer(self.context, threshold=settings.compact_after_exchanges),
            memory=self._memory_recorder(),
        )
        logger.info(
            "assistant.ready model={} topology={} skills={}",
            settings.model,
            settings.topology,
            [entry["name"] for entry in registry.skills_index(settings)],
        )

    def _memory_recorder(self) -> MemoryRecorder | None:
        if not self.settings.memory_enabled:
            return None
        return MemoryRecorder(self.context, ProfileStore.for_path(self.settings.profile_path))

    async def chat(self, message: str, session_id: str = DEFAULT_SESSION_ID) -> str:
        result = await self.run_turn(message, session_id)
        return result.response

    async def run_turn(self, message: str, session_id: str = DEFAULT_SESSION_ID) -> TurnResult:
        return await self.orchestrator.run_turn(session_id, message)

    def skills_info(self) -> list[SkillIndexEntry]:
        """Skills currently available, in registration order."""
        return self.registry.skills_index(self.settings)
