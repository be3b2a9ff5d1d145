# errors.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

TOOL_HINTS = {
    "npm": "Install Node.js (includes npm) or fix PATH.",
    "npx": "Install Node.js (includes npx) or fix PATH.",
    "node": "Install Node.js or fix PATH.",
    "yarn": "Install yarn (e.g., corepack enable) or fix PATH.",
    "pnpm": "Install pnpm (e.g., corepack enable) or fix PATH.",
}

# shells exit with 127 when the command itself could not be found
COMMAND_NOT_FOUND = 127

_TAIL = 4000


def _tail(text: str) -> str:
    return text[-_TAIL:]


class PackagingError(Exception):
    """Base class for every fatal pipeline error."""


@dataclass
class SpawnError(PackagingError):
    """The process could not be started at all."""
    command: str
    cause: OSError

    def __str__(self) -> str:
        return f"Could not start '{self.command}': {self.cause}"


@dataclass
class CommandFailed(PackagingError):
    """
    Non-zero exit code. Carries enough context for:
      - a one-line summary on the console
      - the full output tail in the build log
    """
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def hint(self) -> str | None:
        if self.exit_code != COMMAND_NOT_FOUND:
            return None
        tool = self.command.split()[0] if self.command.split() else ""
        return TOOL_HINTS.get(tool)

    def __str__(self) -> str:
        lines = [f"Command failed with exit code {self.exit_code}: {self.command}"]
        if self.hint:
            lines.append(f"hint={self.hint}")
        if self.stdout.strip():
            lines.append(f"stdout=\n{_tail(self.stdout)}")
        if self.stderr.strip():
            lines.append(f"stderr=\n{_tail(self.stderr)}")
        return "\n".join(lines)


@dataclass
class CommandTimeout(PackagingError):
    """The watchdog killed a command that ran longer than allowed."""
    command: str
    timeout: float
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        return f"Command timed out after {self.timeout:g}s: {self.command}"


@dataclass
class StagingIOError(PackagingError):
    """Copy/remove/rename failed for a reason other than a missing optional source."""
    operation: str
    path: Path
    cause: OSError

    def __str__(self) -> str:
        return f"{self.operation} failed for {self.path}: {self.cause}"


class ConfigInjectionWarning(UserWarning):
    """Runtime config could not be injected. The build is still usable."""
