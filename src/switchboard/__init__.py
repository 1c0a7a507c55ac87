"""Switchboard - route a message to skills, answer with their results."""

from .app import Assistant
from .config import Settings, get_settings
from .core import Orchestrator, TurnPhase, TurnResult
from .skills import BaseSkill, Operation, SkillMetadata, SkillRegistry, StaticSkill
from .state import Message, OperationCall, SessionState

__version__ = "0.1.0"

__all__ = [
    "Assistant",
    "BaseSkill",
    "Message",
    "Operation",
    "OperationCall",
    "Orchestrator",
    "SessionState",
    "Settings",
    "SkillMetadata",
    "SkillRegistry",
    "StaticSkill",
    "TurnPhase",
    "TurnResult",
    "get_settings",
]
