"""Skills: named bundles of operations plus availability logic and instructions."""

from .access import create_skill_access_operations, create_skill_access_skill
from .base import BaseSkill, Skill, SkillMetadata, StaticSkill, skill_instructions
from .loader import LoadReport, build_registry, load_skills
from .operation import EmptyInput, Operation, operation_from_model
from .registry import SkillIndexEntry, SkillRegistry

__all__ = [
    "BaseSkill",
    "EmptyInput",
    "LoadReport",
    "Operation",
    "Skill",
    "SkillIndexEntry",
    "SkillMetadata",
    "SkillRegistry",
    "StaticSkill",
    "build_registry",
    "create_skill_access_operations",
    "create_skill_access_skill",
    "load_skills",
    "operation_from_model",
    "skill_instructions",
]
