# runner.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from . import staging
from .injection import inject_config
from .model import BuildStep, CommandResult, ExecOptions, StagingPaths
from .parsers import classify, describe, has_marker
from .settings import Settings
from .shell import execute
from .ui.console import TerminalReporter

# install deps ---> framework build ---> stage artifacts ---> package build ---> standalone + config


@dataclass
class PipelineRunContext:
    """
    Everything one pipeline run needs, created per invocation and handed to
    every stage. The reporter owns the step list, so nothing leaks between runs.
    """
    paths: StagingPaths
    settings: Settings
    reporter: TerminalReporter

    def run(
        self,
        command: str,
        *,
        cwd: Path,
        inherit_output: bool = False,
        ignore_exit_code: bool = False,
    ) -> CommandResult:
        """Run a command with the run's timeout, mirroring its output to the log."""
        self.reporter.verbose(f"Executing: {command}")
        options = ExecOptions(
            cwd=cwd,
            ignore_exit_code=ignore_exit_code,
            timeout=self.settings.command_timeout,
            inherit_output=inherit_output,
        )

        if inherit_output:
            with self.reporter.passthrough():
                return execute(command, options)

        seen: List[str] = []
        last_progress = ""

        def on_output(_stream: str, chunk: str) -> None:
            nonlocal last_progress
            seen.append(chunk)
            line = chunk.rstrip()
            if line:
                self.reporter.verbose(line)
            if has_marker(chunk):
                progress = describe(classify("".join(seen)))
                if progress and progress != last_progress:
                    last_progress = progress
                    self.reporter.verbose(f"Progress: {progress}")

        return execute(command, options, on_output)


@dataclass(frozen=True)
class Stage:
    """A described unit of work. The action may return a replacement step message."""
    message: str
    action: Callable[[PipelineRunContext], Optional[str]]


@dataclass
class PipelineResult:
    steps: List[BuildStep]
    failed_step: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


# ----------------------------------------------------------------------
# Stages
# ----------------------------------------------------------------------

def install_dependencies(ctx: PipelineRunContext) -> Optional[str]:
    result = ctx.run(ctx.settings.install_command, cwd=ctx.paths.pwakit_dir)
    snapshot = classify(result.stdout)
    if snapshot.added_packages is not None:
        return f"Installed PWAKit dependencies (added {snapshot.added_packages.count} packages)"
    return None


def build_framework(ctx: PipelineRunContext) -> Optional[str]:
    # start from a clean .next so stale artifacts never get packaged
    staging.remove_dir(ctx.paths.next_build_dir)
    ctx.run(ctx.settings.framework_build_command, cwd=ctx.paths.root, inherit_output=True)
    return None


def process_build_artifacts(ctx: PipelineRunContext) -> Optional[str]:
    p = ctx.paths
    staging.remove_dir(p.app_next_dir)
    staging.ensure_dir(p.pwakit_app_dir)
    staging.copy_dir(p.next_build_dir, p.app_next_dir)

    nested = p.app_next_dir / "standalone" / ".next"
    if nested.exists():
        staging.rename(nested, p.app_next_dir / "standalone" / "next")
    return None


def copy_public_assets(ctx: PipelineRunContext) -> Optional[str]:
    p = ctx.paths
    staging.copy_dir(p.public_dir, p.app_next_dir / "standalone" / "public")
    return None


def build_package(ctx: PipelineRunContext) -> Optional[str]:
    result = ctx.run(ctx.settings.package_build_command, cwd=ctx.paths.pwakit_dir)
    summary = describe(classify(result.stdout + result.stderr))
    if summary:
        ctx.reporter.verbose(f"Packaging build: {summary}")
    return None


def prepare_standalone(ctx: PipelineRunContext) -> Optional[str]:
    p = ctx.paths

    ctx.reporter.verbose("  - Copying standalone and static to build directory ...")
    staging.ensure_dir(p.standalone_dir.parent)
    staging.remove_dir(p.standalone_dir)
    staging.remove_dir(p.static_dir)
    staging.copy_dir(p.app_next_dir / "standalone", p.standalone_dir)
    staging.copy_dir(p.app_next_dir / "static", p.static_dir)

    if p.original_ssr.is_file():
        ctx.reporter.verbose(f"  - Moving {p.original_ssr} to {p.standalone_ssr} ...")
        staging.move_file(p.original_ssr, p.standalone_ssr)
    else:
        ctx.reporter.warn(f"{p.original_ssr} not found. Skipping move.")

    ctx.reporter.verbose(f"  - Creating shim in {p.original_ssr} ...")
    staging.copy_file(p.ssr_shim, p.original_ssr)
    return None


def finalize_configuration(ctx: PipelineRunContext) -> Optional[str]:
    p = ctx.paths
    if not inject_config(p.config_file, p.original_ssr):
        return "Finalizing configuration (runtime config not injected)"
    return None


def _done(_ctx: PipelineRunContext) -> Optional[str]:
    return None


DEFAULT_STAGES: Sequence[Stage] = (
    Stage("Installing PWAKit dependencies", install_dependencies),
    Stage("Building Next.js app", build_framework),
    Stage("Processing build artifacts", process_build_artifacts),
    Stage("Copying public assets", copy_public_assets),
    Stage("Building PWA Kit", build_package),
    Stage("Preparing standalone build", prepare_standalone),
    Stage("Finalizing configuration", finalize_configuration),
    Stage("Build completed successfully", _done),
)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def _first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


def run_pipeline(ctx: PipelineRunContext, stages: Sequence[Stage] | None = None) -> PipelineResult:
    """
    Run stages in order, one step each.

    The first stage that raises stops the run: its step is marked failed, the
    error and traceback go to the build log, and the result carries the
    failed step and the error. Nothing is retried.
    """
    stages = DEFAULT_STAGES if stages is None else stages
    reporter = ctx.reporter

    for stage in stages:
        reporter.start_step(stage.message)
        try:
            done_message = stage.action(ctx)
        except KeyboardInterrupt:
            reporter.complete_step(False, f"{stage.message} (interrupted)")
            raise
        except Exception as e:
            reporter.complete_step(False, f"{stage.message}: {_first_line(e)}")
            reporter.error(f"{stage.message} failed: {_first_line(e)}", exc=e)
            return PipelineResult(steps=reporter.steps, failed_step=stage.message, error=e)
        reporter.complete_step(True, done_message)

    return PipelineResult(steps=reporter.steps)
