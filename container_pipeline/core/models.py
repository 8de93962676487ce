"""Data models shared by discovery, the pipeline steps and reporting."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple

from .errors import PipelineError

DESCRIPTOR_NAME = "Dockerfile"
INSTANCE_LABEL = "container-pipeline"
RUN_ID_LABEL = "container-pipeline.run-id"

IssueSeverity = Literal["error", "warning"]


class Phase(Enum):
    """Pipeline phases, declared in execution order."""
    BUILD = "build"
    TEST = "test"
    PUSH = "push"

    @classmethod
    def ordered(cls) -> Tuple["Phase", ...]:
        return (cls.BUILD, cls.TEST, cls.PUSH)


class TargetState(Enum):
    PENDING = "pending"
    BUILDING = "building"
    TESTING = "testing"
    PUSHING = "pushing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


PHASE_STATES: Dict[Phase, TargetState] = {
    Phase.BUILD: TargetState.BUILDING,
    Phase.TEST: TargetState.TESTING,
    Phase.PUSH: TargetState.PUSHING,
}


@dataclass(frozen=True, order=True)
class Target:
    """A distro/version pair with a build descriptor under ``root``."""

    distro: str
    version: str
    root: Path = field(default=Path("."), compare=False)

    @property
    def label(self) -> str:
        return f"{self.distro}/{self.version}"

    @property
    def context_dir(self) -> Path:
        return self.root / self.distro / self.version

    @property
    def descriptor(self) -> Path:
        return self.context_dir / DESCRIPTOR_NAME


@dataclass(frozen=True)
class ImageReference:
    """Primary image name plus the optional ``:latest`` alias."""

    primary: str
    latest: Optional[str] = None

    @property
    def tags(self) -> List[str]:
        return [self.primary] + ([self.latest] if self.latest else [])


@dataclass(slots=True)
class RuntimeIssue:
    """Lightweight issue representation recorded against a target."""

    code: str
    message: str
    severity: IssueSeverity = "error"
    phase: Optional[Phase] = None
    subject: Optional[str] = None

    @classmethod
    def from_error(
        cls,
        error: PipelineError,
        *,
        phase: Optional[Phase] = None,
        severity: IssueSeverity = "error",
    ) -> "RuntimeIssue":
        return cls(code=error.code, message=str(error), severity=severity, phase=phase, subject=error.subject)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "phase": self.phase.value if self.phase else None,
            "subject": self.subject,
        }


@dataclass
class RunResult:
    """Outcome of processing a single target."""
    target: Target
    state: TargetState = TargetState.PENDING
    failed_phases: List[Phase] = field(default_factory=list)
    issues: List[RuntimeIssue] = field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.state is TargetState.SUCCEEDED

    @property
    def description(self) -> str:
        if not self.failed_phases:
            return self.target.label
        phases = " ".join(phase.value for phase in self.failed_phases)
        return f"{self.target.label} ({phases})"

    def record_failure(self, phase: Phase, error: PipelineError) -> None:
        if phase not in self.failed_phases:
            self.failed_phases.append(phase)
        self.issues.append(RuntimeIssue.from_error(error, phase=phase))

    def finish(self) -> None:
        self.state = TargetState.FAILED if self.failed_phases else TargetState.SUCCEEDED


@dataclass
class RunSummary:
    """Aggregate of every processed target, in processing order."""
    run_id: str
    results: List[RunResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> List[RunResult]:
        return [result for result in self.results if result.success]

    @property
    def failed(self) -> List[RunResult]:
        return [result for result in self.results if not result.success]

    @property
    def exit_code(self) -> int:
        if not self.results or self.failed:
            return 1
        return 0


@dataclass(frozen=True)
class RunContext:
    """
    Identifies one invocation of the pipeline.

    Ephemeral test instances are named and labelled with ``run_id`` so the
    cleanup pass only removes instances created by this run.
    """
    run_id: str
    timestamp: datetime

    @classmethod
    def create(cls) -> "RunContext":
        return cls(run_id=uuid.uuid4().hex[:12], timestamp=datetime.now())

    def instance_name(self, target: Target) -> str:
        return f"test-container-{target.distro}-{target.version}-{self.run_id}"

    @property
    def labels(self) -> Dict[str, str]:
        return {INSTANCE_LABEL: "true", RUN_ID_LABEL: self.run_id}

    @property
    def cleanup_filter(self) -> str:
        return f"label={RUN_ID_LABEL}={self.run_id}"
