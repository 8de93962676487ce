"""End-to-end tests for the command-line entry point with a scripted docker CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_tree
from container_pipeline import cli


@pytest.fixture
def docker_installed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli.shutil, "which", lambda name: f"/usr/bin/{name}")


def base_args(tmp_path: Path) -> list:
    return ["--root", str(tmp_path), "--log-file", str(tmp_path / "run.log")]


def test_list_containers(tmp_path, runner, capsys) -> None:
    make_tree(tmp_path, "fedora/latest", "alpine/3.19")

    exit_code = cli.main(base_args(tmp_path) + ["--list"], command_runner=runner)

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Available containers:\n  alpine/3.19\n  fedora/latest\n\nTotal: 2 containers" in out
    assert runner.calls == []


def test_list_with_no_containers(tmp_path, runner) -> None:
    assert cli.main(base_args(tmp_path) + ["-l"], command_runner=runner) == 1


def test_full_run_succeeds(tmp_path, runner, docker_installed, capsys) -> None:
    make_tree(tmp_path, "alpine/3.19", "ubuntu/22.04")

    exit_code = cli.main(base_args(tmp_path), command_runner=runner)

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Processed: 2 successful, 0 failed" in out
    assert "✓ All operations completed successfully!" in out
    log_text = (tmp_path / "run.log").read_text()
    assert "DEBUG: Selected phases: build, test" in log_text


def test_unmatched_filter_exits_nonzero(tmp_path, runner, docker_installed, capsys) -> None:
    make_tree(tmp_path, "alpine/3.19", "fedora/latest")

    exit_code = cli.main(base_args(tmp_path) + ["-d", "ubuntu"], command_runner=runner)

    assert exit_code == 1
    assert runner.calls == []
    assert "No containers found to process" in capsys.readouterr().out


def test_conflicting_phase_flags_abort_before_any_work(tmp_path, runner, docker_installed, capsys) -> None:
    make_tree(tmp_path, "alpine/3.19")

    exit_code = cli.main(base_args(tmp_path) + ["--build-only", "--push-only"], command_runner=runner)

    assert exit_code == 1
    assert runner.calls == []
    assert "multiple exclusive options" in capsys.readouterr().err
    assert not (tmp_path / "run.log").exists()


@pytest.mark.parametrize(
    "extra, message",
    [
        (["--timeout", "soon"], "timeout"),
        (["--parallel", "0"], "Parallel jobs"),
        (["-v", "-q"], "--verbose and --quiet"),
        (["--bogus"], "unrecognized arguments"),
        (["alpine"], "Invalid argument alpine"),
        (["-d", "alpine", "alpine", "3.19"], "Cannot combine"),
        (["-d", " "], "--distro requires a value"),
        (["-d", "alpine", "-d", ""], "--distro requires a value"),
    ],
)
def test_invalid_configuration_exits_with_one(tmp_path, runner, extra, message, capsys) -> None:
    exit_code = cli.main(base_args(tmp_path) + extra, command_runner=runner)

    assert exit_code == 1
    assert message in capsys.readouterr().err
    assert runner.calls == []


def test_legacy_positional_form_selects_one_target(tmp_path, runner, docker_installed) -> None:
    make_tree(tmp_path, "alpine/3.19", "ubuntu/22.04")

    exit_code = cli.main(base_args(tmp_path) + ["--build-only", "ubuntu", "22.04"], command_runner=runner)

    assert exit_code == 0
    assert [call[3] for call in runner.calls_to("docker", "build")] == ["ubuntu-22.04"]


def test_failed_target_is_reported_on_stderr(tmp_path, runner, docker_installed, capsys) -> None:
    make_tree(tmp_path, "alpine/3.19", "ubuntu/22.04")
    runner.on("docker", "build", "-t", "alpine-3.19", return_code=1)

    exit_code = cli.main(base_args(tmp_path) + ["--build-only"], command_runner=runner)

    assert exit_code == 1
    captured = capsys.readouterr()
    assert "Processed: 1 successful, 1 failed" in captured.out
    assert "ERROR: alpine/3.19 (build)" in captured.err


def test_missing_docker_binary(tmp_path, runner, monkeypatch, capsys) -> None:
    make_tree(tmp_path, "alpine/3.19")
    monkeypatch.setattr(cli.shutil, "which", lambda name: None)

    exit_code = cli.main(base_args(tmp_path), command_runner=runner)

    assert exit_code == 1
    assert "FATAL: Missing required dependencies: docker" in capsys.readouterr().err
    assert runner.calls == []


def test_dry_run_needs_no_docker(tmp_path, runner, monkeypatch, capsys) -> None:
    make_tree(tmp_path, "debian/bookworm")
    monkeypatch.setattr(cli.shutil, "which", lambda name: None)

    exit_code = cli.main(
        base_args(tmp_path) + ["--dry-run", "--registry", "r", "--prefix", "p", "--tag-latest"],
        command_runner=runner,
    )

    assert exit_code == 0
    assert runner.calls == []
    out = capsys.readouterr().out
    assert "[DRY RUN] Would push: docker push r/p/debian-bookworm" in out
    assert "[DRY RUN] Would push: docker push r/p/debian:latest" in out


def test_config_file_values_are_overridden_by_flags(tmp_path, runner, docker_installed) -> None:
    make_tree(tmp_path, "alpine/3.19")
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text("registry: ghcr.io\nregistry_prefix: fromfile\ntag_latest: true\n")

    exit_code = cli.main(
        base_args(tmp_path) + ["--config", str(config_path), "--prefix", "fromflag", "--build-only"],
        command_runner=runner,
    )

    assert exit_code == 0
    build = runner.calls_to("docker", "build")[0]
    assert build[2:6] == ["-t", "ghcr.io/fromflag/alpine-3.19", "-t", "ghcr.io/fromflag/alpine:latest"]


def test_json_report(tmp_path, runner, docker_installed) -> None:
    make_tree(tmp_path, "alpine/3.19")
    report_path = tmp_path / "reports" / "run.json"

    exit_code = cli.main(base_args(tmp_path) + ["--report", str(report_path)], command_runner=runner)

    assert exit_code == 0
    report = json.loads(report_path.read_text())
    assert report["succeeded"] == 1
    assert report["exit_code"] == 0
    assert report["targets"][0]["distro"] == "alpine"
    assert report["targets"][0]["state"] == "succeeded"


def test_quiet_mode_hides_info(tmp_path, runner, docker_installed, capsys) -> None:
    make_tree(tmp_path, "alpine/3.19", "ubuntu/22.04")

    exit_code = cli.main(base_args(tmp_path) + ["-q", "--build-only"], command_runner=runner)

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Processing" not in out
    assert "---" not in out
    assert "Processing alpine/3.19" in (tmp_path / "run.log").read_text()


def _interrupt(*args, **kwargs):
    raise KeyboardInterrupt


@pytest.mark.parametrize("stage", ["discover_targets", "log_summary", "save_report"])
def test_interrupt_outside_orchestrator_exits_with_one(tmp_path, runner, docker_installed, monkeypatch, capsys, stage) -> None:
    make_tree(tmp_path, "alpine/3.19")
    monkeypatch.setattr(cli, stage, _interrupt)

    exit_code = cli.main(base_args(tmp_path) + ["--report", str(tmp_path / "run.json")], command_runner=runner)

    assert exit_code == 1
    assert "WARNING: Interrupted by user" in capsys.readouterr().out


def test_interrupt_during_run_still_cleans_up(tmp_path, runner, docker_installed, monkeypatch) -> None:
    make_tree(tmp_path, "alpine/3.19")
    monkeypatch.setattr(cli.Orchestrator, "process_target", _interrupt)

    exit_code = cli.main(base_args(tmp_path), command_runner=runner)

    assert exit_code == 1
    assert runner.calls_to("docker", "ps", "-aq")
