"""Command-line entry point: build, test and push init-system container images."""

from __future__ import annotations

import argparse
import logging
import shutil
import signal
import sys
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv

from .common.command_runner import CommandRunner
from .core.config import PipelineConfig, build_config, load_config_file
from .core.discovery import discover_targets
from .core.errors import ConfigValidationError, NoTargetsMatched
from .core.models import Target
from .logging_setup import configure_logging
from .pipeline.orchestrator import Orchestrator
from .reports.reporter import log_summary, save_report
from .runtime.docker import DockerCli

logger = logging.getLogger(__name__)

EPILOG = """\
examples:
  container-pipeline                                  # build and test all containers
  container-pipeline alpine 3.19                      # single container (legacy format)
  container-pipeline -d alpine -d ubuntu              # Alpine and Ubuntu containers only
  container-pipeline --build-only -v                  # build everything, verbose
  container-pipeline --test-only -d fedora            # test existing Fedora images
  container-pipeline --registry ghcr.io --prefix myorg --tag-latest
  container-pipeline --dry-run --registry docker.io --prefix myuser

Images are tagged REGISTRY/PREFIX/DISTRO-VERSION and, with --tag-latest,
REGISTRY/PREFIX/DISTRO:latest. Containers are discovered from
<root>/<distro>/<version>/Dockerfile.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Report usage errors as configuration errors so they exit with status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigValidationError(f"{message}. Use --help for usage information")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="container-pipeline",
        description="Container build, test, and registry push automation.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("legacy", nargs="*", default=[], metavar="DISTRO VERSION",
                        help="Process exactly one container (legacy format).")
    parser.add_argument("-l", "--list", action="store_true", help="List available containers.")
    parser.add_argument("-d", "--distro", dest="distros", action="append",
                        help="Target a specific distribution. Can be provided multiple times.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (warnings and errors only).")
    parser.add_argument("--build-only", action="store_true", help="Build containers only, skip tests and push.")
    parser.add_argument("--test-only", action="store_true", help="Test only; images must already exist.")
    parser.add_argument("--push-only", action="store_true", help="Push only; images must already exist.")
    parser.add_argument("--no-cleanup", action="store_true", help="Skip the final cleanup of test containers.")
    parser.add_argument("--timeout", metavar="SECONDS", help="Network test timeout (default: 10).")
    parser.add_argument("--log-file", metavar="PATH", help="Log file path (default: container-test.log).")
    parser.add_argument("--parallel", dest="parallel_jobs", metavar="JOBS",
                        help="Accepted for compatibility; containers are processed sequentially.")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be done without executing.")
    parser.add_argument("--registry", help="Target registry (e.g. docker.io, ghcr.io).")
    parser.add_argument("--prefix", dest="registry_prefix", help="Registry prefix/namespace.")
    parser.add_argument("--tag-latest", action="store_true", help="Also tag and push DISTRO:latest.")
    parser.add_argument("--root", dest="root_dir", metavar="DIR",
                        help="Directory containing <distro>/<version>/Dockerfile (default: current directory).")
    parser.add_argument("--config", metavar="FILE", help="YAML or JSON file with default option values.")
    parser.add_argument("--report", dest="report_path", metavar="FILE", help="Write a JSON run report.")
    return parser


def parse_options(argv: Optional[Sequence[str]] = None) -> tuple[PipelineConfig, Dict[str, Any]]:
    """
    Parse command-line arguments into a validated configuration.

    Values from ``--config`` are applied first; anything given on the
    command line overrides them.

    Returns:
        The configuration and the non-configuration options (``list``, ``legacy``).

    Raises:
        ConfigValidationError: On unknown options or invalid values.
    """
    args = build_parser().parse_args(argv)
    options = vars(args)
    extras = {
        "list": options.pop("list", False),
        "legacy": options.pop("legacy", []),
    }
    config_path = options.pop("config", None)

    values = load_config_file(config_path) if config_path else {}
    values.update(options)
    config = build_config(values)
    extras["target"] = _legacy_target(extras["legacy"], config)
    return config, extras


def _legacy_target(arguments: List[str], config: PipelineConfig) -> Optional[Target]:
    if not arguments:
        return None
    if len(arguments) != 2:
        raise ConfigValidationError(f"Invalid argument {arguments[0]}. Use --help for usage information")
    if config.distros:
        raise ConfigValidationError("Cannot combine DISTRO VERSION arguments with --distro")
    distro, version = arguments
    return Target(distro=distro, version=version, root=config.root_dir)


def list_containers(config: PipelineConfig) -> int:
    logger.info("Scanning for available containers...")
    try:
        targets = discover_targets(config.root_dir, config.distros)
    except NoTargetsMatched:
        logger.warning("No containers found in %s", config.root_dir)
        return 1

    print("Available containers:")
    for target in targets:
        print(f"  {target.label}")
    print()
    print(f"Total: {len(targets)} containers")
    return 0


def validate_dependencies(config: PipelineConfig) -> None:
    if config.dry_run:
        return
    if shutil.which("docker") is None:
        raise ConfigValidationError("Missing required dependencies: docker")


def main(argv: Optional[Sequence[str]] = None, command_runner: Optional[CommandRunner] = None) -> int:
    """Entry point for the container pipeline."""
    load_dotenv()

    try:
        config, extras = parse_options(argv)
    except ConfigValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        configure_logging(config.log_file, verbose=config.verbose, quiet=config.quiet)
    except OSError as exc:
        print(f"Error: cannot open log file {config.log_file}: {exc}", file=sys.stderr)
        return 1

    try:
        return _execute(config, extras, command_runner)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 1


def _execute(config: PipelineConfig, extras: Dict[str, Any], command_runner: Optional[CommandRunner]) -> int:
    if extras["list"]:
        return list_containers(config)

    try:
        validate_dependencies(config)
    except ConfigValidationError as exc:
        logger.critical("%s", exc)
        return 1

    if config.registry and not config.registry_prefix:
        logger.warning("Registry specified without prefix. Images will be tagged directly under registry root.")

    logger.info("Starting container automation pipeline")
    logger.debug("Configuration:")
    for key, value in config.to_dict().items():
        logger.debug("  %s=%s", key, value)

    if extras["target"] is not None:
        targets = (extras["target"],)
    else:
        try:
            targets = discover_targets(config.root_dir, config.distros)
        except NoTargetsMatched as exc:
            logger.warning("%s", exc)
            return 1

    docker = DockerCli(command_runner or CommandRunner())
    summary = Orchestrator(config, docker).run(targets)

    log_summary(summary, config)
    if config.report_path:
        report = save_report(summary, config.report_path)
        logger.info("Report saved to: %s", report)
    return summary.exit_code


def _raise_interrupt(signum: int, frame: Any) -> None:
    raise KeyboardInterrupt


def run() -> None:
    """Console script entry point; SIGTERM is treated like Ctrl-C so cleanup still runs."""
    signal.signal(signal.SIGTERM, _raise_interrupt)
    sys.exit(main())


if __name__ == "__main__":
    run()
