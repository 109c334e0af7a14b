"""Application entry point."""

from __future__ import annotations

import asyncio
import os

from config import Config, load_config
from core import setup_logger
from core.app_initializer import ApplicationInitializer
from core.logger import parse_level


async def main(config: Config) -> None:
    """Main application entry point."""
    app = ApplicationInitializer(config)
    await app.initialize()
    await app.run()


if __name__ == "__main__":
    config = load_config()
    # Root logger so every module logger reaches the handlers
    logger = setup_logger(
        name="",
        level=parse_level(config.log_level),
        log_file=os.path.join(config.log_folder, "app.log"),
        colored=True
    )
    try:
        asyncio.run(main(config))
    except KeyboardInterrupt:
        logger.info("Application stopped by user")
    except Exception as e:
        logger.error(f"Application failed: {e}", exc_info=True)
        raise SystemExit(1)
