"""
rally.config — YAML Configuration Loader
=========================================

Reads ``config.yaml`` for **infrastructure-only** settings (service name,
which campaign is "current", API port).  Secrets and connection strings
(``DATABASE_URL``, ``JWT_SECRET``) come from the environment / ``.env``.

Usage::

    from rally.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.campaign_slug)     # "spring"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True, slots=True)
class RallyConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # Slug of the campaign served as "current" to callers
    campaign_slug: str

    # API
    api_port: int = 8000


def load_config(path: str | Path = "config.yaml") -> RallyConfig:
    """Read *path* and return a :class:`RallyConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return RallyConfig(
        app_name=raw["app_name"],
        campaign_slug=str(raw["campaign_slug"]),
        api_port=int(raw.get("api_port", 8000)),
    )
