"""Shared fixtures: a scripted docker runner and throwaway descriptor trees."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

import pytest

from container_pipeline.common.command_runner import CommandResult
from container_pipeline.core.config import PipelineConfig
from container_pipeline.core.models import RunContext
from container_pipeline.pipeline.context import StepContext
from container_pipeline.runtime.docker import DockerCli

ANY = object()


class FakeRunner:
    """Records every command and answers with scripted results; later rules win."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.rules: List[tuple] = []

    def on(self, *pattern, return_code: int = 0, stdout: str = "", stderr: str = "", timed_out: bool = False) -> "FakeRunner":
        self.rules.append((pattern, return_code, stdout, stderr, timed_out))
        return self

    def run(self, command: Sequence[str], *, timeout=None) -> CommandResult:
        command = list(command)
        self.calls.append(command)
        for pattern, return_code, stdout, stderr, timed_out in reversed(self.rules):
            if _matches(pattern, command):
                return CommandResult(
                    command=command,
                    return_code=None if timed_out else return_code,
                    stdout=stdout,
                    stderr=stderr,
                    duration=0.0,
                    timed_out=timed_out,
                    tool_available=True,
                )
        return CommandResult(command, 0, "", "", 0.0, False, True)

    def calls_to(self, *pattern) -> List[List[str]]:
        return [call for call in self.calls if _matches(pattern, call)]


def _matches(pattern: tuple, command: List[str]) -> bool:
    if len(command) < len(pattern):
        return False
    return all(expected is ANY or expected == actual for expected, actual in zip(pattern, command))


def make_tree(root: Path, *labels: str) -> Path:
    """Create ``<root>/<distro>/<version>/Dockerfile`` for every ``distro/version`` label."""
    for label in labels:
        directory = root / label
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "Dockerfile").write_text("FROM scratch\n")
    return root


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("CONTAINER_REGISTRY", raising=False)
    monkeypatch.delenv("CONTAINER_REGISTRY_PREFIX", raising=False)
    yield
    logger = logging.getLogger("container_pipeline")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner().on("docker", "inspect", "-f", stdout="true\n")


@pytest.fixture
def make_config(tmp_path: Path):
    def factory(**overrides) -> PipelineConfig:
        values = {
            "root_dir": tmp_path,
            "log_file": tmp_path / "pipeline.log",
            "settle_delay": 0,
        }
        values.update(overrides)
        return PipelineConfig(**values)

    return factory


@pytest.fixture
def run_context() -> RunContext:
    return RunContext(run_id="abc123", timestamp=datetime(2024, 1, 1))


@pytest.fixture
def make_context(runner: FakeRunner, make_config, run_context: RunContext):
    def factory(**overrides) -> StepContext:
        return StepContext(
            config=make_config(**overrides),
            run_context=run_context,
            docker=DockerCli(runner),
            logger=logging.getLogger("container_pipeline.tests"),
        )

    return factory
