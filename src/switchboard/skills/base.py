"""Skill contract and the SKILL.md-backed base implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import yaml
from loguru import logger

from .operation import Operation

if TYPE_CHECKING:
    from ..config import Settings

SKILL_FILE_NAME = "SKILL.md"
FRONTMATTER_DELIMITER = "---"
DEFAULT_SKILL_NAME = "unknown-skill"
DEFAULT_SKILL_ICON = "🧩"
DEFAULT_SKILL_VERSION = "1.0.0"


@dataclass(frozen=True)
class SkillMetadata:
    """Identity of one skill as shown to the router and to users."""

    name: str
    description: str
    icon: str = DEFAULT_SKILL_ICON
    version: str = DEFAULT_SKILL_VERSION


@runtime_checkable
class Skill(Protocol):
    """Contract implemented by every skill (capability descriptor)."""

    def metadata(self) -> SkillMetadata: ...

    def is_available(self, settings: Settings) -> bool: ...

    def operations(self, settings: Settings) -> Sequence[Operation]: ...


class BaseSkill(ABC):
    """Skill whose metadata and instructions come from `<dirname>/SKILL.md`.

    The frontmatter holds `name`, `description`, `icon` and `version`; the body
    is returned by `instructions()`. A missing or unreadable file yields default
    metadata and no instructions.
    """

    def __init__(self, dirname: Path | str) -> None:
        skill_file = Path(dirname) / SKILL_FILE_NAME
        frontmatter, body = _read_skill_file(skill_file)
        self._metadata = SkillMetadata(
            name=_text(frontmatter.get("name")) or DEFAULT_SKILL_NAME,
            description=_text(frontmatter.get("description")),
            icon=_text(frontmatter.get("icon")) or DEFAULT_SKILL_ICON,
            version=_text(frontmatter.get("version")) or DEFAULT_SKILL_VERSION,
        )
        self._instructions = body
        logger.info("skill.loaded name={} version={}", self._metadata.name, self._metadata.version)

    def metadata(self) -> SkillMetadata:
        return self._metadata

    def instructions(self) -> str:
        return self._instructions

    @abstractmethod
    def is_available(self, settings: Settings) -> bool:
        """Return whether the skill can be used with the current settings."""

    @abstractmethod
    def operations(self, settings: Settings) -> Sequence[Operation]:
        """Return the operations this skill exposes."""


class StaticSkill:
    """Skill assembled from in-memory parts instead of a SKILL.md folder."""

    def __init__(
        self,
        metadata: SkillMetadata,
        operations: Sequence[Operation] | Callable[[Settings], Sequence[Operation]],
        *,
        instructions: str = "",
        available: Callable[[Settings], bool] | None = None,
    ) -> None:
        self._metadata = metadata
        self._operations = operations
        self._instructions = instructions
        self._available = available

    def metadata(self) -> SkillMetadata:
        return self._metadata

    def instructions(self) -> str:
        return self._instructions

    def is_available(self, settings: Settings) -> bool:
        if self._available is None:
            return True
        return self._available(settings)

    def operations(self, settings: Settings) -> Sequence[Operation]:
        if callable(self._operations):
            return list(self._operations(settings))
        return list(self._operations)


def skill_instructions(skill: Skill) -> str:
    """Return a skill's usage instructions, or "" when it has none."""

    getter = getattr(skill, "instructions", None)
    if not callable(getter):
        return ""
    value = getter()
    if not isinstance(value, str):
        return ""
    return value.strip()


def _read_skill_file(skill_file: Path) -> tuple[dict[str, object], str]:
    if not skill_file.is_file():
        logger.warning("skill.file_missing path={}", skill_file)
        return {}, ""
    try:
        content = skill_file.read_text(encoding="utf-8")
    except OSError:
        logger.opt(exception=True).error("skill.file_unreadable path={}", skill_file)
        return {}, ""
    return _split_frontmatter(content)


def _split_frontmatter(content: str) -> tuple[dict[str, object], str]:
    lines = content.splitlines()
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return {}, content.strip()

    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_DELIMITER:
            payload = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1 :]).strip()
            try:
                parsed = yaml.safe_load(payload)
            except yaml.YAMLError:
                return {}, body
            if isinstance(parsed, dict):
                return {str(key).lower(): value for key, value in parsed.items()}, body
            return {}, body
    return {}, content.strip()


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()
