"""interviewguard command line: global options shared by every command."""

from __future__ import annotations

import logging

import click

from interviewguard import __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="interviewguard")
@click.option(
    "--signatures",
    "-s",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML signature tables to use instead of the built-in preset.",
)
@click.option(
    "--alert-log",
    type=click.Path(dir_okay=False),
    help="Append every alert record to this JSON-lines file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log detection activity.")
@click.pass_context
def main(
    ctx: click.Context,
    signatures: str | None,
    alert_log: str | None,
    verbose: bool,
) -> None:
    """InterviewGuard: integrity monitor for remote interviews."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        signatures_path=signatures,
        alert_log=alert_log,
        verbose=verbose,
    )

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    # watchdog logs every inotify event at debug level
    logging.getLogger("watchdog").setLevel(logging.INFO)


def _register_commands() -> None:
    from interviewguard.cli.start import start
    from interviewguard.cli.windows import windows

    main.add_command(start)
    main.add_command(windows)


_register_commands()
