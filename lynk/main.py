"""
Main application entry point
"""

import uvicorn
from lynk.config.settings import settings
from lynk.utils.logger import logger


def main():
    """Start the web application"""
    try:
        settings.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise SystemExit(1)

    logger.info(f"Starting Lynk on {settings.WEB_HOST}:{settings.WEB_PORT}")
    uvicorn.run(
        "lynk.web.main:create_app",
        factory=True,
        host=settings.WEB_HOST,
        port=settings.WEB_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
