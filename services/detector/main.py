import asyncio

from loguru import logger
from pydantic import ValidationError

from mint_detector.config import AppSettings
from mint_detector.errors import StartupError
from mint_detector.runner import run


def main() -> int:
    try:
        settings = AppSettings()
    except ValidationError as e:
        logger.error("Invalid configuration: {}", e)
        return 1
    logger.remove()
    logger.add(lambda m: print(m, end=""), level=settings.log_level)

    logger.info("Starting Meteora DBC token detection bot...")
    try:
        asyncio.run(run(settings))
    except StartupError as e:
        logger.error("Fatal error: {}", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Detector interrupted; shutting down.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
