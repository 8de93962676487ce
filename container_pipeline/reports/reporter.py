import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..core.config import PipelineConfig
from ..core.models import RunResult, RunSummary
from ..logging_setup import SUCCESS

logger = logging.getLogger(__name__)


def log_summary(summary: RunSummary, config: PipelineConfig) -> None:
    """Log the end-of-run summary listing every target's outcome."""
    succeeded = summary.succeeded
    failed = summary.failed

    logger.info("=== EXECUTION SUMMARY ===")
    logger.info("Processed: %d successful, %d failed", len(succeeded), len(failed))

    if succeeded:
        logger.info("Successful operations:")
        for result in succeeded:
            logger.log(SUCCESS, "%s", result.description)

    if failed:
        logger.info("Failed operations:")
        for result in failed:
            logger.error("%s", result.description)
        logger.error("Check %s for detailed error information", config.log_file)
    else:
        logger.log(SUCCESS, "All operations completed successfully!")

    if config.registry and not config.push_only:
        logger.info("Registry: %s", config.registry)
        if config.registry_prefix:
            logger.info("Prefix: %s", config.registry_prefix)


def save_report(summary: RunSummary, path: str | Path) -> Path:
    """
    Save the run summary to a JSON file.

    Args:
        summary: Summary returned by the orchestrator.
        path: Destination file; parent directories are created.

    Returns:
        Path to the saved report.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(summary_to_dict(summary), handle, indent=2, default=str)
    logger.debug("Report saved to %s", path)
    return path


def summary_to_dict(summary: RunSummary) -> Dict[str, Any]:
    return {
        "run_id": summary.run_id,
        "started_at": summary.started_at.isoformat(),
        "finished_at": summary.finished_at.isoformat() if summary.finished_at else None,
        "succeeded": len(summary.succeeded),
        "failed": len(summary.failed),
        "exit_code": summary.exit_code,
        "targets": [_result_to_dict(result) for result in summary.results],
    }


def _result_to_dict(result: RunResult) -> Dict[str, Any]:
    return {
        "distro": result.target.distro,
        "version": result.target.version,
        "state": result.state.value,
        "failed_phases": [phase.value for phase in result.failed_phases],
        "duration": round(result.duration, 3),
        "issues": [issue.to_dict() for issue in result.issues],
    }
