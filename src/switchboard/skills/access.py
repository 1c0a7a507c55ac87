"""Operations that let the model inspect the skill set on demand."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from .base import SkillMetadata, StaticSkill, skill_instructions
from .operation import EmptyInput, Operation, operation_from_model
from .registry import SkillRegistry

if TYPE_CHECKING:
    from ..config import Settings

SKILL_ACCESS_NAME = "skill-access"


class ReadSkillInput(BaseModel):
    skillName: str = Field(..., description='The name of the skill to read (e.g., "calculator", "datetime").')  # noqa: N815


def create_skill_access_operations(registry: SkillRegistry, settings: Settings) -> list[Operation]:
    """Create `list_skills` and `read_skill` bound to one registry."""

    def _list_skills(_params: EmptyInput) -> str:
        skills = registry.skills_index(settings)
        if not skills:
            return "No skills are currently available."
        return json.dumps({"skills": skills}, ensure_ascii=False, indent=2)

    def _read_skill(params: ReadSkillInput) -> str:
        name = params.skillName
        skill = registry.get(name)
        if skill is None:
            return f'Error: Skill "{name}" not found. Use list_skills to see available skills.'
        if not registry.is_available(name, settings):
            return f'Error: Skill "{name}" is registered but not available/enabled in the current configuration.'
        instructions = skill_instructions(skill)
        if not instructions:
            return f'The skill "{name}" exists but has no special instructions.'
        return f"## Instructions for Skill: {name}\n\n{instructions}"

    return [
        operation_from_model(
            EmptyInput,
            _list_skills,
            name="list_skills",
            description=(
                "List all available skills (capabilities) of the assistant with brief descriptions. "
                "Use this when you are unsure what you can do."
            ),
        ),
        operation_from_model(
            ReadSkillInput,
            _read_skill,
            name="read_skill",
            description=(
                "Read the detailed instructions and rules for a specific skill. Use this before using a skill "
                "for the first time or after an error from a skill operation."
            ),
        ),
    ]


def create_skill_access_skill(registry: SkillRegistry) -> StaticSkill:
    def _operations(settings: Settings) -> Sequence[Operation]:
        return create_skill_access_operations(registry, settings)

    return StaticSkill(
        SkillMetadata(name=SKILL_ACCESS_NAME, description="Inspect available skills and their instructions", icon="🧭"),
        _operations,
    )
