"""
Run the calendar backend with uvicorn.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from calendar_backend.config import get_settings

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the calendar backend API")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument(
        "--port", type=int, default=settings.port, help="Port to listen on"
    )
    parser.add_argument(
        "--reload", action="store_true", help="Reload on source changes (dev only)"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    logger.info("Server running on port %d", args.port)
    uvicorn.run(
        "calendar_backend.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
