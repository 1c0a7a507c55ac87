"""Turn engine for Switchboard."""

from .executor import OperationExecutor
from .generator import Generator
from .memory import MemoryRecorder
from .orchestrator import Orchestrator, TurnPhase, TurnResult
from .router import Router, RouteResult
from .summarizer import Summarizer

__all__ = [
    "Generator",
    "MemoryRecorder",
    "OperationExecutor",
    "Orchestrator",
    "RouteResult",
    "Router",
    "Summarizer",
    "TurnPhase",
    "TurnResult",
]
