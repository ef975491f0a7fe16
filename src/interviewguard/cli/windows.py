"""CLI command: interviewguard windows: one-shot listing of what the monitor sees."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from interviewguard.capture.select import default_provider
from interviewguard.cli._common import load_config
from interviewguard.detection.classifier import WindowClassifier
from interviewguard.errors import PermissionDenied, SystemQueryFailure

console = Console()


@click.command()
@click.pass_context
def windows(ctx: click.Context) -> None:
    """List visible windows and the violations each would raise."""
    config = load_config(ctx)
    classifier = WindowClassifier(config.load_signatures())

    try:
        provider = default_provider()
        provider.check_permission()
        records = provider.snapshot()
    except (PermissionDenied, SystemQueryFailure) as e:
        console.print(f"[red]Cannot list windows:[/red] {e}")
        sys.exit(1)

    screen_area = provider.primary_screen_area()

    table = Table(title=f"Visible windows ({len(records)})")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Process")
    table.add_column("Title")
    table.add_column("Layer", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Matches")

    for record in records:
        matches = classifier.classify(record, screen_area)
        kinds = ", ".join(
            f"[{'red' if m.kind.is_critical else 'yellow'}]{m.kind.value}[/]"
            for m in matches
        )
        table.add_row(
            str(record.id),
            record.owner_process_name,
            record.title or "[dim]<untitled>[/dim]",
            str(record.layer),
            f"{record.bounds.width:.0f}x{record.bounds.height:.0f}",
            kinds or "[green]-[/green]",
        )

    console.print(table)
