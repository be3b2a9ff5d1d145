# injection.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigInjectionWarning
from .model import CONFIG_PLACEHOLDER
from .staging import patch_file, read_text
from .ui.console import VERBOSE

log = logging.getLogger(__name__)

DEFAULT_CONSTANT = "nextConfig"


@dataclass(frozen=True)
class InjectedConfig:
    """Runtime config lifted out of a build artifact, ready to paste into JS."""
    config: Any
    constant_name: str = DEFAULT_CONSTANT

    def render(self) -> str:
        payload = json.dumps(self.config, separators=(",", ":"), ensure_ascii=False)
        return f"const {self.constant_name} = {payload};"


def load_config(artifact: str | Path, constant_name: str = DEFAULT_CONSTANT) -> InjectedConfig:
    """
    Read the `config` field out of a JSON build artifact
    (required-server-files.json).

    Raises:
        ConfigInjectionWarning: artifact missing, not UTF-8 JSON, or has no config
    """
    p = Path(artifact)
    if not p.is_file():
        raise ConfigInjectionWarning(f"{p} not found. Cannot inject runtime config.")

    try:
        data = json.loads(read_text(p))
    except UnicodeDecodeError as e:
        raise ConfigInjectionWarning(f"{p} is not UTF-8 text. Cannot inject runtime config.") from e
    except json.JSONDecodeError as e:
        raise ConfigInjectionWarning(f"{p} is not valid JSON ({e}). Cannot inject runtime config.") from e

    if not isinstance(data, dict) or "config" not in data:
        raise ConfigInjectionWarning(f"{p} has no 'config' field. Cannot inject runtime config.")

    return InjectedConfig(config=data["config"], constant_name=constant_name)


def inject_config(
    artifact: str | Path,
    target: str | Path,
    *,
    marker: str = CONFIG_PLACEHOLDER,
    constant_name: str = DEFAULT_CONSTANT,
) -> bool:
    """
    Replace the placeholder in target with `const <name> = <config>;`.

    The placeholder has to appear exactly once. Every problem is logged as a
    warning and leaves target untouched; a missing config only degrades the
    runtime, it does not break the package.

    Returns:
        True if target was rewritten.
    """
    target_p = Path(target)
    try:
        injected = load_config(artifact, constant_name)
        log.log(VERBOSE, "Read runtime config from %s", artifact)

        if not target_p.is_file():
            raise ConfigInjectionWarning(f"{target_p} not found. Cannot inject runtime config.")

        try:
            occurrences = read_text(target_p).count(marker)
        except UnicodeDecodeError as e:
            raise ConfigInjectionWarning(f"{target_p} is not UTF-8 text. Cannot inject runtime config.") from e
        if occurrences != 1:
            raise ConfigInjectionWarning(
                f"Expected placeholder {marker!r} exactly once in {target_p}, found {occurrences}."
            )
    except ConfigInjectionWarning as w:
        log.warning("%s", w)
        return False

    return patch_file(target_p, marker, injected.render())
