"""Builtin skills and their registration table."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from switchboard.hookspecs import hookimpl

from ..base import Skill
from .calculator import CalculatorSkill
from .clock import DateTimeSkill
from .user_profile import UserProfileSkill

if TYPE_CHECKING:
    from switchboard.config import Settings

BUILTIN_SKILL_FACTORIES: dict[str, Callable[[], Skill]] = {
    "calculator": CalculatorSkill,
    "datetime": DateTimeSkill,
    "user-profile": UserProfileSkill,
}


@hookimpl
def provide_skills(settings: Settings) -> list[Callable[[], Skill]]:
    return list(BUILTIN_SKILL_FACTORIES.values())


__all__ = ["BUILTIN_SKILL_FACTORIES", "CalculatorSkill", "DateTimeSkill", "UserProfileSkill", "provide_skills"]
