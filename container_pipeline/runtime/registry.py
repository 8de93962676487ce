"""Post-push lookup of image tags through the registry HTTP API."""

from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

import requests
from requests import RequestException

from container_pipeline.core.errors import AdvisoryFailure

logger = logging.getLogger(__name__)


def split_reference(image: str) -> Tuple[str, str, str]:
    """Split ``registry/repo[:tag]`` into its registry, repository and tag."""
    registry, image_path = image.split("/", 1)
    last_segment = image_path.rsplit("/", 1)[-1]
    if ":" in last_segment:
        repository, tag = image_path.rsplit(":", 1)
    else:
        repository, tag = image_path, "latest"
    return registry, repository, tag


def verify_pushed_tag(image: str, *, timeout: float = 10, attempts: int = 3, scheme: str = "https") -> None:
    """
    Confirm that ``image`` is listed by its registry.

    Raises:
        AdvisoryFailure: When the tag cannot be confirmed after ``attempts`` tries.
    """
    if "/" not in image:
        raise AdvisoryFailure(f"Cannot verify {image}: no registry in image name", subject=image)

    registry, repository, tag = split_reference(image)
    verify_url = f"{scheme}://{registry}/v2/{repository}/tags/list"
    logger.debug("Verifying image in registry: %s", verify_url)

    last_error: Optional[str] = None
    for attempt in range(attempts):
        try:
            response = requests.get(verify_url, timeout=timeout)
            if response.status_code == 200:
                tags = response.json().get("tags") or []
                if tag in tags:
                    logger.debug("Verified %s in registry", image)
                    return
                last_error = f"tag '{tag}' not found in tags list: {tags}"
            else:
                last_error = f"registry returned status {response.status_code}"
        except (RequestException, ValueError) as exc:
            last_error = str(exc)

        if attempt < attempts - 1:
            time.sleep(1)

    raise AdvisoryFailure(
        f"Image pushed but registry verification failed ({verify_url}): {last_error}",
        subject=image,
    )
