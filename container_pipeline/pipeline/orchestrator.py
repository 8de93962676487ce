"""Sequential build/test/push loop over discovered targets."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Dict, Mapping, Optional, Sequence

from ..core.config import PipelineConfig
from ..core.errors import PipelineError
from ..core.models import PHASE_STATES, Phase, RunContext, RunResult, RunSummary, Target
from ..runtime.docker import DockerCli
from .context import PipelineStep, StepContext
from .steps import BuildStep, PushStep, SmokeTestStep


def default_steps() -> Dict[Phase, PipelineStep]:
    return {
        Phase.BUILD: BuildStep(),
        Phase.TEST: SmokeTestStep(),
        Phase.PUSH: PushStep(),
    }


class Orchestrator:
    """
    Run the selected phases for every target, one target at a time.

    A failing phase marks its target failed without stopping the remaining
    phases of that target or any later target. Ephemeral test instances
    labelled with this run's id are removed on every exit path unless
    cleanup was disabled.
    """

    def __init__(
        self,
        config: PipelineConfig,
        docker: DockerCli,
        *,
        run_context: Optional[RunContext] = None,
        steps: Optional[Mapping[Phase, PipelineStep]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.docker = docker
        self.run_context = run_context or RunContext.create()
        self.steps = dict(steps) if steps is not None else default_steps()
        self.logger = logger or logging.getLogger(__name__)
        self.context = StepContext(
            config=config,
            run_context=self.run_context,
            docker=docker,
            logger=self.logger,
        )

    def run(self, targets: Sequence[Target]) -> RunSummary:
        summary = RunSummary(run_id=self.run_context.run_id, started_at=self.run_context.timestamp)
        phases = self.config.selected_phases()

        self.logger.info("Found %d containers to process", len(targets))
        self.logger.debug("Selected phases: %s", ", ".join(phase.value for phase in phases))
        if self.config.parallel_jobs > 1:
            self.logger.debug(
                "Parallel jobs set to %d; targets are still processed sequentially",
                self.config.parallel_jobs,
            )

        try:
            self._check_registry_login(phases)
            for index, target in enumerate(targets, 1):
                result = self.process_target(target, phases)
                summary.results.append(result)
                if not self.config.quiet and index < len(targets):
                    print("---", flush=True)
        finally:
            summary.finished_at = datetime.now()
            self.cleanup()

        return summary

    def process_target(self, target: Target, phases: Sequence[Phase]) -> RunResult:
        """Run ``phases`` for one target in build, test, push order."""
        result = RunResult(target=target)
        started = time.time()
        self.logger.info("Processing %s", target.label)

        for phase in Phase.ordered():
            if phase not in phases:
                continue
            result.state = PHASE_STATES[phase]
            step = self.steps[phase]
            try:
                result.issues.extend(step.run(target, self.context))
            except PipelineError as exc:
                self.logger.error("%s", exc)
                if exc.details:
                    self.logger.debug("%s details: %s", phase.value, exc.details)
                result.record_failure(phase, exc)

        result.finish()
        result.duration = time.time() - started
        if result.success:
            self.logger.debug("Successfully processed %s", target.label)
        else:
            self.logger.debug("Failed to process %s", result.description)
        return result

    def cleanup(self) -> None:
        """Remove every instance labelled with this run's id; failures are only logged."""
        if self.config.no_cleanup:
            self.logger.debug("Skipping cleanup due to --no-cleanup flag")
            return
        if self.config.dry_run:
            self.logger.debug("[DRY RUN] Would clean up containers matching %s", self.run_context.cleanup_filter)
            return

        self.logger.info("Cleaning up test containers...")
        try:
            instance_ids = self.docker.list_instances(self.run_context.cleanup_filter)
            if not instance_ids:
                return
            removed = self.docker.force_remove(instance_ids)
        except OSError as exc:
            self.logger.warning("Cleanup failed: %s", exc)
            return

        if removed.succeeded():
            self.logger.debug("Cleaned up %d containers from this run", len(instance_ids))
        else:
            self.logger.warning("Failed to remove test containers: %s", removed.error_text())

    def _check_registry_login(self, phases: Sequence[Phase]) -> None:
        registry = self.config.registry
        if Phase.PUSH not in phases or not registry or self.config.dry_run:
            return

        self.logger.debug("Checking registry authentication for %s", registry)
        info = self.docker.system_info()
        if not info.succeeded() or "Registry:" not in info.stdout:
            self.logger.warning("Docker registry authentication may be required")
            self.logger.info("Please ensure you're logged in with: docker login %s", registry)
