"""Error taxonomy for the container pipeline.

Phase errors (build, test, push) are caught by the orchestrator and recorded
against the target being processed. ``ConfigValidationError`` and
``NoTargetsMatched`` abort the whole run before any target is touched.
"""
from __future__ import annotations

from typing import Optional, Sequence


class PipelineError(RuntimeError):
    """Base class for all pipeline failures."""

    code = "PIPELINE_ERROR"

    def __init__(self, message: str, *, subject: Optional[str] = None, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.subject = subject
        self.details = details


class DescriptorNotFound(PipelineError):
    """Raised when a target has no build descriptor on disk."""

    code = "DESCRIPTOR_NOT_FOUND"


class BuildFailure(PipelineError):
    code = "BUILD_FAILED"


class ImageNotFound(PipelineError):
    """Raised when a test or push needs an image that does not exist locally."""

    code = "IMAGE_NOT_FOUND"


class InstanceStartFailure(PipelineError):
    code = "INSTANCE_START_FAILED"


class CheckFailure(PipelineError):
    """Raised when one of the fatal smoke checks failed."""

    code = "CHECK_FAILED"

    def __init__(self, checks: Sequence[str], *, subject: Optional[str] = None) -> None:
        self.checks = list(checks)
        super().__init__(f"Smoke checks failed: {', '.join(self.checks)}", subject=subject)


class AdvisoryFailure(PipelineError):
    """Raised by advisory checks; logged as a warning, never fails a phase."""

    code = "ADVISORY_CHECK_FAILED"


class PushFailure(PipelineError):
    code = "PUSH_FAILED"


class ConfigValidationError(PipelineError):
    code = "CONFIG_INVALID"


class NoTargetsMatched(PipelineError):
    """Raised when discovery finds no target for the requested filter."""

    code = "NO_TARGETS_MATCHED"

    def __init__(self, root: str, distros: Sequence[str] = ()) -> None:
        self.root = root
        self.distros = list(distros)
        message = f"No containers found to process in {root}"
        if self.distros:
            message += f" (target distros: {' '.join(self.distros)})"
        super().__init__(message, subject=root)
