"""Global configuration: XDG paths, env vars, defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from interviewguard.detection.screenshots import default_screenshot_dir
from interviewguard.signatures.loader import default_signatures, load_signatures
from interviewguard.signatures.models import SignatureTables

logger = logging.getLogger(__name__)


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "interviewguard"
    return Path.home() / ".local" / "share" / "interviewguard"


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "interviewguard"
    return Path.home() / ".config" / "interviewguard"


def _env_float(name: str, default: float) -> float:
    """Positive float from the environment; malformed values keep the default."""
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must not be negative", name, raw)
        return default
    return value


@dataclass
class GuardConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    config_dir: Path = field(default_factory=_default_config_dir)
    window_interval: float = 1.0
    process_interval: float = 5.0
    recency_window: float = 5.0
    screenshot_dir: Path = field(default_factory=default_screenshot_dir)
    install_path: Path | None = None
    cleaner_delay: float = 2.0
    signatures_path: Path | None = None
    alert_log: Path | None = None
    verbose: bool = False

    @classmethod
    def load(cls) -> GuardConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        config.window_interval = _env_float(
            "INTERVIEWGUARD_POLL_INTERVAL", config.window_interval
        )
        config.process_interval = _env_float(
            "INTERVIEWGUARD_PROCESS_INTERVAL", config.process_interval
        )
        config.recency_window = _env_float(
            "INTERVIEWGUARD_RECENCY_WINDOW", config.recency_window
        )
        config.cleaner_delay = _env_float(
            "INTERVIEWGUARD_CLEANER_DELAY", config.cleaner_delay
        )

        env_shots = os.environ.get("INTERVIEWGUARD_SCREENSHOT_DIR")
        if env_shots:
            config.screenshot_dir = Path(env_shots).expanduser()

        env_install = os.environ.get("INTERVIEWGUARD_INSTALL_PATH")
        if env_install:
            config.install_path = Path(env_install).expanduser()

        env_alert_log = os.environ.get("INTERVIEWGUARD_ALERT_LOG")
        if env_alert_log:
            config.alert_log = Path(env_alert_log).expanduser()

        # Pick up a user signature file from the config dir if present
        user_signatures = config.config_dir / "signatures.yaml"
        if user_signatures.is_file():
            config.signatures_path = user_signatures

        return config

    def load_signatures(self) -> SignatureTables:
        """Signature tables from the configured file, else the packaged preset."""
        if self.signatures_path is not None:
            return load_signatures(self.signatures_path)
        return default_signatures()
