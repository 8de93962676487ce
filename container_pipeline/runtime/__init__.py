"""Container runtime and registry helpers used by the pipeline steps."""

from .docker import DockerCli, INSTANCE_OPTIONS
from .registry import verify_pushed_tag

__all__ = ["DockerCli", "INSTANCE_OPTIONS", "verify_pushed_tag"]
