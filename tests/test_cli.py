from __future__ import annotations

import pytest
from click.testing import CliRunner

from mrtpack.cli import cli
from mrtpack.model import StagingPaths
from mrtpack.settings import Settings


@pytest.fixture
def env(project_settings: Settings) -> dict:
    return {
        "MRTPACK_ROOT": str(project_settings.root_dir),
        "MRTPACK_INSTALL_CMD": project_settings.install_command,
        "MRTPACK_FRAMEWORK_BUILD_CMD": project_settings.framework_build_command,
        "MRTPACK_PACKAGE_BUILD_CMD": project_settings.package_build_command,
        "MRTPACK_COMMAND_TIMEOUT": "",
    }


def test_successful_build_exits_zero(project: StagingPaths, env: dict) -> None:
    result = CliRunner().invoke(cli, [], env=env)

    assert result.exit_code == 0, result.output
    assert "Creating an optimized production build" in result.output
    assert "  Build completed successfully" in result.output
    assert 'const nextConfig = {"a":1};' in project.original_ssr.read_text()

    log = project.log_file.read_text()
    assert "Completed: Build completed successfully" in log


def test_failing_stage_exits_non_zero(project: StagingPaths, env: dict) -> None:
    env["MRTPACK_PACKAGE_BUILD_CMD"] = "echo 'webpack exploded' 1>&2; exit 5"

    result = CliRunner().invoke(cli, [], env=env)

    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "Building PWA Kit" in result.output
    assert "exit code 5" in result.output
    assert "Build completed successfully" not in result.output

    log = project.log_file.read_text()
    assert "Failed: Building PWA Kit" in log
    assert "webpack exploded" in log


def test_verbose_shows_command_output(project: StagingPaths, env: dict) -> None:
    result = CliRunner().invoke(cli, ["--verbose"], env=env)

    assert result.exit_code == 0, result.output
    assert "verbose: added 7 packages in 2s" in result.output


def test_invalid_configuration_exits_two(env: dict) -> None:
    env["MRTPACK_COMMAND_TIMEOUT"] = "later"
    result = CliRunner().invoke(cli, [], env=env)
    assert result.exit_code == 2
    assert "Invalid configuration" in result.output
