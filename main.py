"""
docbot entry point.

Serves the HTTP API under uvicorn, or runs the offline console demo.

Usage:
    HTTP API:     python main.py serve
    Console mode: python main.py console [--scenario booking]
"""

import logging
import sys

from docbot.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the FastAPI app (answer generation requires OPENAI_API_KEY)."""
    import uvicorn

    from docbot.api.app import create_app

    logger.info("Starting %s on %s:%d", settings.app_name, settings.host, settings.port)
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode(argv: list[str]) -> None:
    """Start the offline console demo (no API keys required)."""
    import console_demo

    sys.argv = [sys.argv[0], *argv]
    console_demo.main()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode(sys.argv[2:])
    else:
        _run_server()
