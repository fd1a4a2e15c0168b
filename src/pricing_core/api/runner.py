#!/usr/bin/env python3
"""FastAPI server runner."""

import os

import structlog
import uvicorn

from pricing_core.api.app import create_app
from pricing_core.app import PricingApp
from pricing_core.config.loader import load_config
from pricing_core.logging import setup_logging

logger = structlog.get_logger()


def main():
    """Run the query API against the configured state database."""
    config = load_config(os.environ.get("PRICING_CONFIG", "config.yaml"))
    setup_logging(config.logging.level, config.logging.format)

    app = create_app(PricingApp.from_config(config))
    port = int(os.environ.get("PRICING_API_PORT", "8000"))
    logger.info("Starting FastAPI server", port=port)

    try:
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=port,
            log_config=None  # Use our structlog setup
        )
    except Exception as e:
        logger.error("Failed to start server", error=str(e))
        raise


if __name__ == "__main__":
    main()
