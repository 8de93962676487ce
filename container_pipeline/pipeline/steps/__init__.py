from .build_step import BuildStep
from .test_step import PACKAGE_MANAGERS, SmokeTestStep
from .push_step import PushStep

__all__ = [
    "BuildStep",
    "SmokeTestStep",
    "PushStep",
    "PACKAGE_MANAGERS",
]
