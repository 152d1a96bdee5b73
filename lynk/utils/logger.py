"""
Logging configuration
"""

import logging
import sys
from pathlib import Path
from lynk.config.settings import settings
from lynk.config.constants import LOG_FORMAT, LOG_DATE_FORMAT


def setup_logger(name: str = "lynk") -> logging.Logger:
    """
    Setup and configure logger
    
    Args:
        name: Logger name
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    
    # Remove existing handlers
    logger.handlers.clear()
    
    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)
    
    # File handler
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
    else:
        log_dir = Path(__file__).parent.parent.parent / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "lynk.log")
    except OSError as e:
        logger.warning(f"File logging disabled, cannot write to {log_dir}: {e}")
    else:
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
    
    return logger


# Global logger instance
logger = setup_logger()
