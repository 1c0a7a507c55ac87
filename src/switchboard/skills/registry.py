"""Skill registry: the dynamic capability set the engine may call."""

from __future__ import annotations

import builtins
from typing import TYPE_CHECKING, TypedDict

from loguru import logger

from ..errors import OperationConflictError
from .base import Skill, skill_instructions
from .operation import Operation

if TYPE_CHECKING:
    from ..config import Settings


class SkillIndexEntry(TypedDict):
    name: str
    description: str
    icon: str


class SkillRegistry:
    """Collects skills and answers availability questions against live settings.

    Nothing here is cached: availability can depend on state that changes
    between turns (for example an OAuth token appearing on disk).
    """

    def __init__(self, *, strict_operation_names: bool = False) -> None:
        self._skills: dict[str, Skill] = {}
        self._strict = strict_operation_names

    def register(self, skill: Skill) -> None:
        name = skill.metadata().name
        if name in self._skills:
            logger.warning("skill.registry.overwrite name={}", name)
        self._skills[name] = skill

    def unregister(self, name: str) -> bool:
        return self._skills.pop(name, None) is not None

    def get(self, name: str) -> Skill | None:
        return self._skills.get(name)

    def has(self, name: str) -> bool:
        return name in self._skills

    def skills(self) -> builtins.list[Skill]:
        return list(self._skills.values())

    def available_skills(self, settings: Settings) -> builtins.list[Skill]:
        disabled = {name.casefold() for name in settings.disabled_skills}
        available: builtins.list[Skill] = []
        for name, skill in self._skills.items():
            if name.casefold() in disabled:
                continue
            try:
                if skill.is_available(settings):
                    available.append(skill)
            except Exception:
                logger.opt(exception=True).error("skill.availability.error name={}", name)
        return available

    def is_available(self, name: str, settings: Settings) -> bool:
        skill = self.get(name)
        return skill is not None and skill in self.available_skills(settings)

    def operations(self, settings: Settings) -> builtins.list[Operation]:
        """Flatten operations across available skills, in registration order."""

        flattened: builtins.list[Operation] = []
        for skill in self.available_skills(settings):
            name = skill.metadata().name
            try:
                flattened.extend(skill.operations(settings))
            except Exception:
                logger.opt(exception=True).error("skill.operations.error name={}", name)
        return flattened

    def operation_map(self, settings: Settings) -> dict[str, Operation]:
        """Name-to-operation lookup; a later skill shadows an earlier one."""

        mapping: dict[str, Operation] = {}
        owners: dict[str, str] = {}
        for skill in self.available_skills(settings):
            skill_name = skill.metadata().name
            try:
                operations = skill.operations(settings)
            except Exception:
                logger.opt(exception=True).error("skill.operations.error name={}", skill_name)
                continue
            for operation in operations:
                previous = owners.get(operation.name)
                if previous is not None:
                    if self._strict:
                        raise OperationConflictError(operation.name, previous, skill_name)
                    logger.warning(
                        "skill.registry.operation_shadowed name={} previous={} current={}",
                        operation.name,
                        previous,
                        skill_name,
                    )
                mapping[operation.name] = operation
                owners[operation.name] = skill_name
        return mapping

    def skills_index(self, settings: Settings) -> builtins.list[SkillIndexEntry]:
        entries: builtins.list[SkillIndexEntry] = []
        for skill in self.available_skills(settings):
            meta = skill.metadata()
            entries.append({"name": meta.name, "description": meta.description, "icon": meta.icon})
        return entries

    def combined_instructions(self, settings: Settings) -> str:
        blocks = [skill_instructions(skill) for skill in self.available_skills(settings)]
        return "\n\n".join(block for block in blocks if block)
