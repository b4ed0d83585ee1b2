import logging
import os
import sys
from briefsmith.core.config import settings

def setup_logger(name: str = "briefsmith", log_file: str = "pipeline.log"):
    """
    Configures a logger that outputs to both console and a file.
    The file keeps the DEBUG trail of every decomposition and synthesis run.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Re-importing must not stack handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Console Handler (for real-time monitoring)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File Handler (full run trail)
    file_path = os.path.join(settings.LOG_DIR, log_file)
    file_handler = logging.FileHandler(file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger

logger = setup_logger()
