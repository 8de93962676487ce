"""Run-wide configuration and the optional configuration file loader."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigValidationError
from .models import ImageReference, Phase, Target

DEFAULT_PROBE_URL = "https://httpbin.org/ip"
DEFAULT_LOG_FILE = "container-test.log"


def _env(name: str) -> Optional[str]:
    return os.environ.get(name) or None


class PipelineConfig(BaseModel):
    """Configuration settings for a single pipeline run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_dir: Path = Field(default_factory=Path.cwd, description="Directory holding <distro>/<version>/Dockerfile trees.")
    distros: List[str] = Field(default_factory=list, description="Restrict discovery to these distro names.")

    # Output settings
    verbose: bool = False
    quiet: bool = False
    log_file: Path = Field(default=Path(DEFAULT_LOG_FILE))
    report_path: Optional[Path] = Field(default=None, description="Write a JSON run report to this path.")

    # Phase selection
    build_only: bool = False
    test_only: bool = False
    push_only: bool = False
    dry_run: bool = False
    no_cleanup: bool = False

    # Registry settings
    registry: Optional[str] = Field(default_factory=lambda: _env("CONTAINER_REGISTRY"))
    registry_prefix: Optional[str] = Field(default_factory=lambda: _env("CONTAINER_REGISTRY_PREFIX"))
    tag_latest: bool = False
    verify_registry: bool = Field(default=False, description="Look up pushed tags through the registry HTTP API.")

    # Timing settings
    timeout: int = Field(default=10, description="Network probe timeout in seconds.")
    settle_delay: float = Field(default=5.0, description="Seconds to wait after starting a test instance.")
    parallel_jobs: int = Field(default=1, description="Accepted for compatibility; targets run sequentially.")

    probe_url: str = DEFAULT_PROBE_URL

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Timeout must be a positive integer")
        return value

    @field_validator("parallel_jobs")
    @classmethod
    def _validate_parallel_jobs(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Parallel jobs must be a positive integer")
        return value

    @field_validator("settle_delay")
    @classmethod
    def _validate_settle_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Settle delay cannot be negative")
        return value

    @field_validator("distros")
    @classmethod
    def _strip_distros(cls, distros: List[str]) -> List[str]:
        stripped = [distro.strip() for distro in distros]
        if not all(stripped):
            raise ValueError("--distro requires a value")
        return stripped

    @field_validator("registry", "registry_prefix")
    @classmethod
    def _strip_slashes(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().strip("/") or None

    @model_validator(mode="after")
    def _check_exclusive_flags(self) -> "PipelineConfig":
        exclusive = [self.build_only, self.test_only, self.push_only]
        if sum(exclusive) > 1:
            raise ValueError("Cannot specify multiple exclusive options: --build-only, --test-only, --push-only")
        if self.verbose and self.quiet:
            raise ValueError("Cannot specify both --verbose and --quiet")
        return self

    def selected_phases(self) -> List[Phase]:
        """Return the phases to run for every target, in execution order."""
        if self.build_only:
            return [Phase.BUILD]
        if self.test_only:
            return [Phase.TEST]
        if self.push_only:
            return [Phase.PUSH]
        phases = [Phase.BUILD, Phase.TEST]
        if self.registry:
            phases.append(Phase.PUSH)
        return phases

    def image_reference(self, target: Target) -> ImageReference:
        """
        Generate the image names for a target.

        Returns:
            Primary name ``[registry/][prefix/]distro-version`` and, when
            latest tagging is requested, ``[registry/][prefix/]distro:latest``.
        """
        namespace = "".join(f"{part}/" for part in (self.registry, self.registry_prefix) if part)
        primary = f"{namespace}{target.distro}-{target.version}"
        latest = f"{namespace}{target.distro}:latest" if self.tag_latest else None
        return ImageReference(primary=primary, latest=latest)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a JSON-friendly dictionary."""
        return self.model_dump(mode="json")


def build_config(values: Dict[str, Any]) -> PipelineConfig:
    """Validate raw option values, raising ``ConfigValidationError`` on failure."""
    try:
        return PipelineConfig.model_validate(values)
    except ValidationError as exc:
        messages = []
        for error in exc.errors():
            message = error["msg"].removeprefix("Value error, ")
            location = ".".join(str(part) for part in error["loc"])
            messages.append(f"{location}: {message}" if location else message)
        raise ConfigValidationError("; ".join(messages)) from exc


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """Load raw configuration values from a YAML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise ConfigValidationError(f"Config file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            raise ConfigValidationError(f"Unsupported config file format: {suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigValidationError(f"Cannot parse config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping of options")
    return data
