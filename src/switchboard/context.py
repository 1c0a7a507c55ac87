"""Runtime context handed to every engine component at construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import loguru
from loguru import logger as _root_logger

from .config import Settings
from .skills.registry import SkillRegistry

if TYPE_CHECKING:
    from .llm import LanguageModel


@dataclass
class RuntimeContext:
    """Settings, registry, model client and logger for one assistant instance."""

    settings: Settings
    registry: SkillRegistry
    llm: LanguageModel
    logger: loguru.Logger = field(default=_root_logger)

    def component_logger(self, component: str) -> loguru.Logger:
        return self.logger.bind(component=component)
