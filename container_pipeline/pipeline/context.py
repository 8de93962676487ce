from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol

from ..core.config import PipelineConfig
from ..core.models import Phase, RunContext, RuntimeIssue, Target
from ..runtime.docker import DockerCli


@dataclass(slots=True)
class StepContext:
    """Static runtime context that is shared across pipeline steps."""

    config: PipelineConfig
    run_context: RunContext
    docker: DockerCli
    logger: logging.Logger


class PipelineStep(Protocol):
    """
    Protocol implemented by the build, test and push steps.

    ``run`` raises a ``PipelineError`` when the phase fails and returns the
    advisory issues it collected otherwise.
    """

    phase: Phase

    def run(self, target: Target, context: StepContext) -> List[RuntimeIssue]:
        ...
