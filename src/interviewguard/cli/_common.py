"""Helpers shared by CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from interviewguard.config import GuardConfig


def load_config(ctx: click.Context) -> GuardConfig:
    """Environment config, with global CLI options applied on top."""
    config = GuardConfig.load()
    options = ctx.obj or {}
    if options.get("signatures_path"):
        config.signatures_path = Path(options["signatures_path"])
    if options.get("alert_log"):
        config.alert_log = Path(options["alert_log"])
    config.verbose = bool(options.get("verbose"))
    return config
