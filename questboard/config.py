"""
questboard.config — YAML Configuration Loader
==============================================

Reads ``config.yaml`` for **soft** settings (defaults for new sessions,
listing page size, server port).  Secrets and connection strings stay in
the environment (``.env``): ``DATABASE_URL`` and ``AUTH_JWT_SECRET``.

Usage::

    from questboard.config import load_config

    cfg = load_config()           # reads ./config.yaml by default
    print(cfg.default_timezone)   # "Europe/Stockholm"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


@dataclass(frozen=True, slots=True)
class QuestboardConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Sessions
    default_timezone: str = "UTC"

    # Browsing
    list_page_size: int = 20

    # Server
    api_port: int = 8000


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> QuestboardConfig:
    """Read *path* and return a :class:`QuestboardConfig` instance.

    Keys missing from the file fall back to the dataclass defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If ``list_page_size`` or ``api_port`` is not a positive integer.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = QuestboardConfig()
    page_size = int(raw.get("list_page_size", defaults.list_page_size))
    port = int(raw.get("api_port", defaults.api_port))
    if page_size < 1:
        raise ValueError(f"list_page_size must be positive, got {page_size}")
    if port < 1:
        raise ValueError(f"api_port must be positive, got {port}")

    return QuestboardConfig(
        default_timezone=str(raw.get("default_timezone", defaults.default_timezone)),
        list_page_size=page_size,
        api_port=port,
    )
