from __future__ import annotations

import shlex
from typing import List

from ...core.errors import AdvisoryFailure, ImageNotFound, PushFailure
from ...core.models import Phase, RuntimeIssue, Target
from ...logging_setup import SUCCESS
from ...runtime.registry import verify_pushed_tag
from ..context import StepContext


class PushStep:
    """Push the primary image, and the latest alias when requested, to the registry."""

    phase = Phase.PUSH

    def run(self, target: Target, context: StepContext) -> List[RuntimeIssue]:
        logger = context.logger
        config = context.config
        image = config.image_reference(target)

        if not config.registry:
            logger.warning("No registry specified, skipping push for %s", target.label)
            return []

        if config.dry_run:
            for tag in image.tags:
                logger.info("[DRY RUN] Would push: %s", shlex.join(context.docker.push_command(tag)))
            return []

        if not context.docker.image_exists(image.primary):
            raise ImageNotFound(f"Image {image.primary} not found (required for pushing)", subject=image.primary)

        issues: List[RuntimeIssue] = []
        for tag in image.tags:
            logger.info("Pushing %s to registry", tag)
            result = context.docker.push(tag)
            if not result.succeeded():
                raise PushFailure(f"Failed to push {tag}", subject=tag, details=result.error_text())

            if config.verify_registry:
                try:
                    verify_pushed_tag(tag, timeout=config.timeout)
                except AdvisoryFailure as exc:
                    logger.warning("%s", exc)
                    issues.append(RuntimeIssue.from_error(exc, phase=self.phase, severity="warning"))

        logger.log(SUCCESS, "Pushed %s", image.primary)
        return issues
