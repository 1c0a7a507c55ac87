"""Pluggy hook namespace and skill-provider hook specifications."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from switchboard.config import Settings
    from switchboard.skills.base import Skill

SWITCHBOARD_HOOK_NAMESPACE = "switchboard"
hookspec = pluggy.HookspecMarker(SWITCHBOARD_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(SWITCHBOARD_HOOK_NAMESPACE)


class SwitchboardHookSpecs:
    """Hook contract for packages that contribute skills."""

    @hookspec
    def provide_skills(self, settings: Settings) -> list[Skill | Callable[[], Skill]] | None:
        """Return skills, or zero-argument factories building them, for this process."""
