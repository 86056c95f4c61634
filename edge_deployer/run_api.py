# edge_deployer/run_api.py
"""Run the deployer HTTP service."""

import logging

import uvicorn

from edge_deployer.api.container import get_orchestrator
from edge_deployer.api.main import app
from edge_deployer.config import settings


def main():
    """Main entry point."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    logger.info("=" * 80)
    logger.info("🚀 EDGE DEPLOYER")
    logger.info("=" * 80)
    logger.info(f"Applications dir: {settings.apps_dir}")
    logger.info(f"Limits: {settings.max_cores} cores, {settings.max_app_mem} MiB")
    logger.info(f"Image-only mode: {settings.image_only_mode}")

    # Records still marked deployed reference live backend resources
    get_orchestrator().recover()

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
