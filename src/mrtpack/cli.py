# cli.py
from __future__ import annotations

import sys

import click

from mrtpack.errors import CommandFailed
from mrtpack.model import StagingPaths
from mrtpack.runner import PipelineRunContext, run_pipeline
from mrtpack.settings import Settings
from mrtpack.ui.console import TerminalReporter


@click.command()
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Show command output, progress details and info messages on the console",
)
def cli(verbose):
    """mrtpack: package a Next.js production build for the Managed Runtime."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        click.echo(click.style("\nERROR: Invalid configuration", fg="red", bold=True), err=True)
        click.echo(str(e), err=True)
        sys.exit(2)

    paths = StagingPaths.from_root(settings.root_dir)

    click.clear()
    with TerminalReporter(paths.log_file, verbose=verbose) as reporter:
        reporter.print_title()
        ctx = PipelineRunContext(paths=paths, settings=settings, reporter=reporter)

        try:
            result = run_pipeline(ctx)
        except KeyboardInterrupt:
            reporter.error("Interrupted by user")
            sys.exit(130)

        if not result.ok:
            err = result.error
            lines = str(err).splitlines() or [type(err).__name__]
            details = lines if verbose else lines[:1]
            suggestion = f"See {paths.log_file} for the full log."
            if isinstance(err, CommandFailed) and err.hint:
                suggestion = f"Hint: {err.hint}\n{suggestion}"
            reporter.print_error(
                "Build failed",
                f"Stage '{result.failed_step}' did not complete.",
                details=details,
                suggestion=suggestion,
            )
            sys.exit(result.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
