"""CLI command: interviewguard start <SESSION_ID>: monitor until the session ends."""

from __future__ import annotations

import signal
import sys
import threading

import click
from rich.console import Console

from interviewguard.actions.alert import AlertAction
from interviewguard.actions.self_destruct import SelfDestructAction
from interviewguard.capture.select import default_provider
from interviewguard.cli._common import load_config
from interviewguard.detection.engine import DetectionEngine, DetectionObserver
from interviewguard.errors import PermissionDenied
from interviewguard.session.controller import SessionController
from interviewguard.session.models import ViolationEvent

console = Console(stderr=True)


class ConsoleShell:
    """Minimal user-facing shell. It never says which signature matched."""

    def __init__(self, finished: threading.Event) -> None:
        self._finished = finished

    def on_start(self) -> None:
        console.print("[green]Monitoring active.[/green] Keep this window open.")

    def on_stop(self) -> None:
        console.print("[dim]Monitoring stopped.[/dim]")
        self._finished.set()

    def on_fail(self, reason: str) -> None:
        console.print(f"[red]Monitoring could not start:[/red] {reason}")
        self._finished.set()

    def on_violation(self, event: ViolationEvent) -> None:
        console.print(
            "[bold red]Integrity violation detected.[/bold red] "
            "The application will now close."
        )


@click.command()
@click.argument("session_id", required=False)
@click.pass_context
def start(ctx: click.Context, session_id: str | None) -> None:
    """Start monitoring the interview identified by SESSION_ID."""
    config = load_config(ctx)
    if not session_id:
        session_id = click.prompt("Session ID")
    session_id = session_id.strip()
    if not session_id:
        raise click.BadParameter("session ID must not be empty")

    signatures = config.load_signatures()
    try:
        provider = default_provider()
    except PermissionDenied as e:
        console.print(f"[red]Monitoring could not start:[/red] {e}")
        sys.exit(1)

    def engine_factory(observer: DetectionObserver) -> DetectionEngine:
        return DetectionEngine(
            provider,
            signatures,
            observer,
            window_interval=config.window_interval,
            process_interval=config.process_interval,
            screenshot_dir=config.screenshot_dir,
            recency_window=config.recency_window,
        )

    finished = threading.Event()
    controller = SessionController(
        engine_factory,
        shell=ConsoleShell(finished),
        alert=AlertAction(log_path=config.alert_log),
        self_destruct=SelfDestructAction(
            install_path=config.install_path, delay=config.cleaner_delay
        ),
    )

    if not controller.start(session_id):
        sys.exit(1)

    def _signal_handler(signum: int, frame: object) -> None:
        # Quitting mid-session counts as abandoning it
        controller.quit()
        finished.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    while not finished.wait(timeout=0.5):
        pass
