from .execution.embedded_engine import EmbeddedEngine
from .execution.local_engine import LocalEngine
from .profile import RuntimeProfile, get_profile, load_profiles
from .request import HarnessRequest, Mode, RequestDecodeError, decode_request
from .response import Response
from .runner import CaseResult, RunResult, TestCase, run_code, run_tests
from .wrapper import WrappedProgram, wrap_code

__all__ = [
    "CaseResult",
    "EmbeddedEngine",
    "HarnessRequest",
    "LocalEngine",
    "Mode",
    "RequestDecodeError",
    "Response",
    "RunResult",
    "RuntimeProfile",
    "TestCase",
    "WrappedProgram",
    "decode_request",
    "get_profile",
    "load_profiles",
    "run_code",
    "run_tests",
    "wrap_code",
]
