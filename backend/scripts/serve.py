"""Run the API with uvicorn on $PORT (default 3000).

Usage (from `backend/`):
    python -m scripts.serve
"""

from __future__ import annotations

import logging
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

LOG = logging.getLogger("serve")


def main() -> None:
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")
    from settings import Settings

    cfg = Settings()
    logging.basicConfig(level=cfg.LOG_LEVEL)
    LOG.info("Server running at http://localhost:%s", cfg.PORT)
    uvicorn.run("api.main:app", host="0.0.0.0", port=cfg.PORT, log_level=cfg.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
