"""Configuration, data model, error taxonomy and target discovery."""

from .config import PipelineConfig, build_config, load_config_file
from .discovery import discover_targets
from .models import ImageReference, Phase, RunContext, RunResult, RunSummary, Target, TargetState

__all__ = [
    "PipelineConfig",
    "build_config",
    "load_config_file",
    "discover_targets",
    "ImageReference",
    "Phase",
    "RunContext",
    "RunResult",
    "RunSummary",
    "Target",
    "TargetState",
]
