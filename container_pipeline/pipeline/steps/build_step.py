from __future__ import annotations

import shlex
from typing import List

from ...core.errors import BuildFailure, DescriptorNotFound
from ...core.models import Phase, RuntimeIssue, Target
from ...logging_setup import SUCCESS
from ..context import StepContext


class BuildStep:
    """Build the image for a target from its descriptor."""

    phase = Phase.BUILD

    def run(self, target: Target, context: StepContext) -> List[RuntimeIssue]:
        logger = context.logger
        image = context.config.image_reference(target)

        if not target.descriptor.is_file():
            raise DescriptorNotFound(f"Dockerfile not found at {target.descriptor}", subject=str(target.descriptor))

        command = context.docker.build_command(image.tags, target.descriptor, target.context_dir)

        logger.info("Building %s", image.primary)
        logger.debug("Build context: %s", target.context_dir)
        logger.debug("Dockerfile: %s", target.descriptor)
        if image.latest:
            logger.debug("Also tagging as: %s", image.latest)

        if context.config.dry_run:
            logger.info("[DRY RUN] Would build: %s", shlex.join(command))
            return []

        result = context.docker.build(image.tags, target.descriptor, target.context_dir)
        if not result.succeeded():
            error_text = result.error_text("Unknown docker build error")
            logger.debug("docker build output for %s:\n%s", image.primary, error_text)
            raise BuildFailure(
                f"Failed to build {image.primary}",
                subject=str(target.descriptor),
                details=error_text,
            )

        logger.log(SUCCESS, "Built %s", image.primary)
        return []
