"""
Server entry point for the DSX Extractor API.

Host, port and debug mode come from the same environment-backed settings the
application reads (HOST, PORT, DEBUG).
"""

import logging

from dsx_extractor.config_loader import configure_logging

from .config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Start the application server."""
    import uvicorn

    settings = get_settings()
    configure_logging("DEBUG" if settings.debug else "INFO")

    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
