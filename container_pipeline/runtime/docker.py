"""Docker CLI calls used by the build, test and push steps."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from container_pipeline.common.command_runner import CommandResult, CommandRunner

BUILD_TIMEOUT = 1800
PUSH_TIMEOUT = 600
EXEC_TIMEOUT = 60
CONTROL_TIMEOUT = 30

# Options every ephemeral test instance is started with so an init system can boot.
INSTANCE_OPTIONS = (
    "--privileged",
    "--tmpfs", "/tmp",
    "--tmpfs", "/run",
    "-v", "/sys/fs/cgroup:/sys/fs/cgroup:ro",
)


class DockerCli:
    """Build, run, exec into and push images through the ``docker`` binary."""

    def __init__(
        self,
        command_runner: CommandRunner,
        docker_bin: str = "docker",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.command_runner = command_runner
        self.docker_bin = docker_bin
        self.logger = logger or logging.getLogger(__name__)

    def build_command(self, tags: Sequence[str], descriptor: Path, context_dir: Path) -> List[str]:
        command = [self.docker_bin, "build"]
        for tag in tags:
            command.extend(["-t", tag])
        command.extend(["-f", str(descriptor), str(context_dir)])
        return command

    def build(self, tags: Sequence[str], descriptor: Path, context_dir: Path) -> CommandResult:
        return self.command_runner.run(self.build_command(tags, descriptor, context_dir), timeout=BUILD_TIMEOUT)

    def image_exists(self, image: str) -> bool:
        result = self.command_runner.run([self.docker_bin, "image", "inspect", image], timeout=CONTROL_TIMEOUT)
        return result.succeeded()

    def run_command(self, image: str, name: str, labels: Mapping[str, str]) -> List[str]:
        command = [self.docker_bin, "run", "-d", "--name", name]
        for key, value in labels.items():
            command.extend(["--label", f"{key}={value}"])
        command.extend(INSTANCE_OPTIONS)
        command.append(image)
        return command

    def run(self, image: str, name: str, labels: Mapping[str, str]) -> CommandResult:
        """Start a detached instance of ``image``."""
        return self.command_runner.run(self.run_command(image, name, labels), timeout=CONTROL_TIMEOUT)

    def exec(self, name: str, command: Sequence[str], timeout: Optional[float] = EXEC_TIMEOUT) -> CommandResult:
        return self.command_runner.run([self.docker_bin, "exec", name, *command], timeout=timeout)

    def is_running(self, name: str) -> bool:
        result = self.command_runner.run(
            [self.docker_bin, "inspect", "-f", "{{.State.Running}}", name],
            timeout=CONTROL_TIMEOUT,
        )
        return result.succeeded() and result.stdout.strip() == "true"

    def stop(self, name: str) -> CommandResult:
        return self.command_runner.run([self.docker_bin, "stop", name], timeout=CONTROL_TIMEOUT)

    def remove(self, name: str) -> CommandResult:
        return self.command_runner.run([self.docker_bin, "rm", name], timeout=CONTROL_TIMEOUT)

    def push_command(self, image: str) -> List[str]:
        return [self.docker_bin, "push", image]

    def push(self, image: str) -> CommandResult:
        return self.command_runner.run(self.push_command(image), timeout=PUSH_TIMEOUT)

    def list_instances(self, label_filter: str) -> List[str]:
        """Return ids of all instances, running or not, matching ``label_filter``."""
        result = self.command_runner.run(
            [self.docker_bin, "ps", "-aq", "--filter", label_filter],
            timeout=CONTROL_TIMEOUT,
        )
        if not result.succeeded():
            self.logger.warning("Could not list instances for %s: %s", label_filter, result.error_text())
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def force_remove(self, instance_ids: Sequence[str]) -> CommandResult:
        return self.command_runner.run([self.docker_bin, "rm", "-f", *instance_ids], timeout=CONTROL_TIMEOUT)

    def system_info(self) -> CommandResult:
        return self.command_runner.run([self.docker_bin, "system", "info"], timeout=CONTROL_TIMEOUT)
