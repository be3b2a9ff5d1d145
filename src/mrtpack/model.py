# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def finished(self) -> bool:
        return self in (StepStatus.SUCCESS, StepStatus.ERROR)


@dataclass
class BuildStep:
    """One line of the status display: a message and its lifecycle state."""
    message: str
    status: StepStatus = StepStatus.PENDING


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished subprocess."""
    stdout: str
    stderr: str
    exit_code: int


@dataclass(frozen=True)
class ExecOptions:
    """
    Every option the subprocess runner understands.

      cwd:              working directory (None = current directory)
      env:              overrides merged over a copy of os.environ
      ignore_exit_code: return the result even when the exit code is non-zero
      timeout:          watchdog in seconds, None disables it
      inherit_output:   let the child write straight to the console (no capture)
    """
    cwd: Optional[Path] = None
    env: Dict[str, str] = field(default_factory=dict)
    ignore_exit_code: bool = False
    timeout: float | None = None
    inherit_output: bool = False


# ----------------------------------------------------------------------
# Directory layout
# ----------------------------------------------------------------------

CONFIG_PLACEHOLDER = "/* -- INSERT NEXT CONFIG HERE -- */"


@dataclass(frozen=True)
class StagingPaths:
    """
    Absolute paths used by the pipeline, computed once from the project root.

    root/
      .next/                         framework build output
      public/                        static assets
      .pwakit/
        app/next/                    copy of .next (standalone/.next renamed to next)
        app/ssr-shim.js              entry template with the config placeholder
        build/ssr.js                 bundled server entry, later replaced by the shim
        build/next/standalone/       final packaged server
        build/next/static/
        .logs/build.log              durable log
    """
    root: Path
    next_build_dir: Path
    public_dir: Path
    pwakit_dir: Path
    pwakit_app_dir: Path
    pwakit_build_dir: Path
    app_next_dir: Path
    standalone_dir: Path
    static_dir: Path
    original_ssr: Path
    standalone_ssr: Path
    ssr_shim: Path
    config_file: Path
    logs_dir: Path
    log_file: Path

    @classmethod
    def from_root(cls, root: str | Path) -> StagingPaths:
        root = Path(root).expanduser().resolve()
        pwakit = root / ".pwakit"
        build = pwakit / "build"
        standalone = build / "next" / "standalone"
        logs = pwakit / ".logs"
        return cls(
            root=root,
            next_build_dir=root / ".next",
            public_dir=root / "public",
            pwakit_dir=pwakit,
            pwakit_app_dir=pwakit / "app",
            pwakit_build_dir=build,
            app_next_dir=pwakit / "app" / "next",
            standalone_dir=standalone,
            static_dir=build / "next" / "static",
            original_ssr=build / "ssr.js",
            standalone_ssr=standalone / "ssr.js",
            ssr_shim=pwakit / "app" / "ssr-shim.js",
            config_file=standalone / "next" / "required-server-files.json",
            logs_dir=logs,
            log_file=logs / "build.log",
        )
