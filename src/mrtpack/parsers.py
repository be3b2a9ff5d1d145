# parsers.py
# Progress markers in framework-build and npm output.
# Used for display only: nothing here decides whether a build failed.

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import List, Optional

RUNNING = "running"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

LINTING_MARKER = "Linting and checking validity of types"
PAGE_DATA_MARKER = "Collecting page data"
STATIC_PAGES_MARKER = "Generating static pages"
BUILD_TRACES_MARKER = "Collecting build traces"
OPTIMIZATION_MARKER = "Finalizing page optimization"

_MARKERS = (
    "Compiled",
    "Failed to compile",
    LINTING_MARKER,
    PAGE_DATA_MARKER,
    STATIC_PAGES_MARKER,
    BUILD_TRACES_MARKER,
    OPTIMIZATION_MARKER,
    "Extracted in",
    "added ",
    "up to date",
)

_COMPILE_TIME_RE = re.compile(r"Compiled successfully in ([0-9.]+)s")
_EXTRACTED_RE = re.compile(r"Extracted in \(([0-9.]+)ms\)")
_STATIC_COUNT_RE = re.compile(r"Generating static pages \((\d+)/(\d+)\)")
_ADDED_RE = re.compile(r"added (\d+) packages?")


@dataclass(frozen=True)
class StaticPagesStatus:
    status: str
    current: Optional[int] = None
    total: Optional[int] = None


@dataclass(frozen=True)
class AddedPackages:
    count: int


@dataclass(frozen=True)
class BuildStatusSnapshot:
    """What the output seen so far says about build progress. None = not seen."""
    compilation_status: Optional[str] = None
    compilation_time: Optional[str] = None
    linting_status: Optional[str] = None
    page_data_status: Optional[str] = None
    static_pages_status: Optional[StaticPagesStatus] = None
    build_traces_status: Optional[str] = None
    optimization_status: Optional[str] = None
    extracted_time: Optional[str] = None
    install_status: Optional[str] = None
    added_packages: Optional[AddedPackages] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def has_marker(text: str) -> bool:
    """Cheap pre-check: could classify() learn anything new from this text?"""
    return any(m in text for m in _MARKERS)


def _phase(output: str, marker: str) -> Optional[str]:
    # a check mark earlier on the same line means the phase finished
    if re.search(r"✓[^\n]*" + re.escape(marker), output):
        return SUCCESS
    if marker in output:
        return RUNNING
    return None


def _last(pattern: re.Pattern[str], output: str) -> Optional[re.Match[str]]:
    match = None
    for match in pattern.finditer(output):
        pass
    return match


def classify(output: str) -> BuildStatusSnapshot:
    """
    Scan the full accumulated output and return a status snapshot.

    Pure and idempotent. Callers re-scan the whole buffer on every call, so a
    field detected once stays detected as the buffer grows.
    """
    compilation_status = None
    compilation_time = None
    if "Compiled successfully" in output:
        compilation_status = SUCCESS
        m = _COMPILE_TIME_RE.search(output)
        if m:
            compilation_time = m.group(1)
    elif "Compiled with warnings" in output:
        compilation_status = WARNING
    elif "Failed to compile" in output:
        compilation_status = ERROR

    static_pages = None
    static_phase = _phase(output, STATIC_PAGES_MARKER)
    if static_phase:
        m = _last(_STATIC_COUNT_RE, output)
        if m:
            static_pages = StaticPagesStatus(static_phase, int(m.group(1)), int(m.group(2)))
        else:
            static_pages = StaticPagesStatus(static_phase)

    extracted = _EXTRACTED_RE.search(output)

    install_status = None
    added_packages = None
    added = _last(_ADDED_RE, output)
    if added:
        install_status = SUCCESS
        added_packages = AddedPackages(count=int(added.group(1)))
    elif "up to date" in output:
        install_status = SUCCESS

    return BuildStatusSnapshot(
        compilation_status=compilation_status,
        compilation_time=compilation_time,
        linting_status=_phase(output, LINTING_MARKER),
        page_data_status=_phase(output, PAGE_DATA_MARKER),
        static_pages_status=static_pages,
        build_traces_status=_phase(output, BUILD_TRACES_MARKER),
        optimization_status=_phase(output, OPTIMIZATION_MARKER),
        extracted_time=extracted.group(1) if extracted else None,
        install_status=install_status,
        added_packages=added_packages,
    )


def describe(snapshot: BuildStatusSnapshot) -> str:
    """Short one-line progress summary, empty string for an empty snapshot."""
    parts: List[str] = []

    if snapshot.compilation_status:
        text = f"compile {snapshot.compilation_status}"
        if snapshot.compilation_time:
            text += f" ({snapshot.compilation_time}s)"
        parts.append(text)

    for label, status in (
        ("lint", snapshot.linting_status),
        ("page data", snapshot.page_data_status),
    ):
        if status:
            parts.append(f"{label} {status}")

    pages = snapshot.static_pages_status
    if pages:
        text = f"static pages {pages.status}"
        if pages.total is not None:
            text += f" ({pages.current}/{pages.total})"
        parts.append(text)

    for label, status in (
        ("build traces", snapshot.build_traces_status),
        ("optimization", snapshot.optimization_status),
    ):
        if status:
            parts.append(f"{label} {status}")

    if snapshot.added_packages is not None:
        parts.append(f"added {snapshot.added_packages.count} packages")
    elif snapshot.install_status:
        parts.append(f"install {snapshot.install_status}")

    return ", ".join(parts)
