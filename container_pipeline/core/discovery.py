from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Tuple

from .errors import NoTargetsMatched
from .models import DESCRIPTOR_NAME, Target

logger = logging.getLogger(__name__)


def discover_targets(root: str | Path, distros: Iterable[str] = ()) -> Tuple[Target, ...]:
    """
    Find every ``<root>/<distro>/<version>/Dockerfile`` build descriptor.

    Args:
        root: Directory to scan.
        distros: Optional distro names to keep; versions are never filtered.

    Returns:
        Targets sorted by distro, then version.

    Raises:
        NoTargetsMatched: When no descriptor survives the filter.
    """
    root = Path(root)
    wanted = set(distros)
    targets = []

    for descriptor in root.glob(f"*/*/{DESCRIPTOR_NAME}"):
        if not descriptor.is_file():
            continue
        version_dir = descriptor.parent
        distro_dir = version_dir.parent
        if distro_dir.name.startswith(".") or version_dir.name.startswith("."):
            continue

        target = Target(distro=distro_dir.name, version=version_dir.name, root=root)
        if wanted and target.distro not in wanted:
            logger.debug("Skipping %s (not in target distros)", target.label)
            continue
        targets.append(target)

    if not targets:
        raise NoTargetsMatched(str(root), sorted(wanted))

    return tuple(sorted(targets))
