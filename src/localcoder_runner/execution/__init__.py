from .embedded_engine import EmbeddedEngine
from .engine import ExecutionEngine
from .local_engine import LocalEngine
from .types import (
    DecodeFailure,
    EngineFailure,
    ExecutionOutcome,
    ProcessOutcome,
    ProcessRequest,
    UserSignaled,
)

__all__ = [
    "DecodeFailure",
    "EmbeddedEngine",
    "EngineFailure",
    "ExecutionEngine",
    "ExecutionOutcome",
    "LocalEngine",
    "ProcessOutcome",
    "ProcessRequest",
    "UserSignaled",
]
