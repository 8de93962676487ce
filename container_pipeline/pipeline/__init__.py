"""Per-target build, test and push orchestration."""

from .context import PipelineStep, StepContext
from .orchestrator import Orchestrator, default_steps

__all__ = ["Orchestrator", "PipelineStep", "StepContext", "default_steps"]
