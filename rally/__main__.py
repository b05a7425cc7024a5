"""
rally.__main__ — Entry point for ``python -m rally``
=====================================================

Wiring:
1. Configure logging.
2. Load .env (secrets, DATABASE_URL).
3. Load config.yaml (service name, current campaign, port).
4. Serve :data:`rally.api.main.app` with Uvicorn.

Schema creation and campaign seeding happen in the app's lifespan, so
``uvicorn rally.api.main:app`` behaves the same way.

Run with::

    python -m rally
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from rally.config import load_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("rally")


def main() -> None:
    """Bootstrap and run the Rally API."""
    load_dotenv()

    cfg = load_config(os.getenv("RALLY_CONFIG", "config.yaml"))
    logger.info("Config loaded — %s, current campaign '%s'", cfg.app_name, cfg.campaign_slug)

    # log_config=None keeps the handlers configured above.
    uvicorn.run("rally.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
