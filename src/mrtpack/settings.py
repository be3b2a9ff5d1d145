# settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_INSTALL_CMD = "npm install"
DEFAULT_FRAMEWORK_BUILD_CMD = "npm run build:next"
DEFAULT_PACKAGE_BUILD_CMD = "npm run build:pwakit"


@dataclass(frozen=True)
class Settings:
    root_dir: Path
    install_command: str = DEFAULT_INSTALL_CMD
    framework_build_command: str = DEFAULT_FRAMEWORK_BUILD_CMD
    package_build_command: str = DEFAULT_PACKAGE_BUILD_CMD
    command_timeout: float | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Read settings from MRTPACK_* environment variables.

        Raises:
            ValueError: if MRTPACK_COMMAND_TIMEOUT is not a positive number
        """
        env = os.environ if environ is None else environ

        root = Path(env.get("MRTPACK_ROOT") or os.getcwd())

        timeout = None
        raw_timeout = env.get("MRTPACK_COMMAND_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(
                    f"MRTPACK_COMMAND_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
                ) from None
            if timeout <= 0:
                raise ValueError(f"MRTPACK_COMMAND_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(
            root_dir=root,
            install_command=env.get("MRTPACK_INSTALL_CMD") or DEFAULT_INSTALL_CMD,
            framework_build_command=env.get("MRTPACK_FRAMEWORK_BUILD_CMD") or DEFAULT_FRAMEWORK_BUILD_CMD,
            package_build_command=env.get("MRTPACK_PACKAGE_BUILD_CMD") or DEFAULT_PACKAGE_BUILD_CMD,
            command_timeout=timeout,
        )
