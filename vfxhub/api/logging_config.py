import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from vfxhub.config import config


def setup_logging():
    # Log directory under the project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    log_dir = os.path.join(project_root, "logs")
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("vfxhub")
    logger.setLevel(config.get("logging", "level", "INFO"))

    # Handlers already attached, nothing to do
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        config.get("logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    # Rotating file handler
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "vfxhub.log"),
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    return logger


# Module-level logger shared by the app
logger = setup_logging()
