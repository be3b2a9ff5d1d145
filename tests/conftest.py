from __future__ import annotations

import io
from pathlib import Path

import pytest

from mrtpack.model import CONFIG_PLACEHOLDER, StagingPaths
from mrtpack.settings import Settings
from mrtpack.ui.console import TerminalReporter

SHIM = (
    "const path = require('node:path')\n"
    "\n"
    f"{CONFIG_PLACEHOLDER}\n"
    "\n"
    "nextConfig.distDir = './build/next/standalone/next'\n"
)

INSTALL_CMD = "echo 'added 7 packages in 2s'"
FRAMEWORK_CMD = (
    "mkdir -p .next/standalone/.next .next/static/chunks"
    " && printf '{\"config\":{\"a\":1}}' > .next/standalone/.next/required-server-files.json"
    " && echo server > .next/standalone/server.js"
    " && echo js > .next/static/chunks/main.js"
)
PACKAGE_CMD = "mkdir -p build && echo bundle > build/ssr.js && echo 'Compiled successfully in 1.5s'"


class TTYStream(io.StringIO):
    def isatty(self) -> bool:
        return True


@pytest.fixture
def tty_stream() -> TTYStream:
    """A display stream that reports itself as an interactive terminal."""
    return TTYStream()


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "build.log"


@pytest.fixture
def reporter(log_file: Path):
    r = TerminalReporter(log_file, stream=io.StringIO())
    yield r
    r.close()


@pytest.fixture
def project(tmp_path: Path) -> StagingPaths:
    """A root directory laid out the way the packager expects before a build."""
    root = tmp_path / "site"
    paths = StagingPaths.from_root(root)
    paths.pwakit_app_dir.mkdir(parents=True)
    paths.ssr_shim.write_text(SHIM)
    paths.public_dir.mkdir(parents=True)
    (paths.public_dir / "favicon.ico").write_text("icon")
    return paths


@pytest.fixture
def project_settings(project: StagingPaths) -> Settings:
    return Settings(
        root_dir=project.root,
        install_command=INSTALL_CMD,
        framework_build_command=FRAMEWORK_CMD,
        package_build_command=PACKAGE_CMD,
        command_timeout=30,
    )
