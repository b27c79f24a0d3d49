"""
logger.py
----------
📄 Centralized logging utility for the tariff comparator.

Purpose:
--------
Provides a consistent logging setup for every stage (source parsing,
offer building, cost calculation, offer selection, invoice extraction)
to log events, recovered row problems and fatal errors.

Outputs:
---------
✅ Logs to console
✅ Logs to file at /logs/tariff_comparator.log

Usage Example:
---------------
from tariff_comparator.utils.logger import get_logger
logger = get_logger(__name__)
logger.info("Offer build started.")
"""

import os
import logging

from tariff_comparator.config import BASE_DIR, LOG_LEVEL

# ----------------------------------------------------------------------
# 1️⃣ Define log directory (auto-created if missing)
# ----------------------------------------------------------------------
LOG_DIR = os.path.join(BASE_DIR, "logs")
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FILE = os.path.join(LOG_DIR, "tariff_comparator.log")

# ----------------------------------------------------------------------
# 2️⃣ Configure logging format
# ----------------------------------------------------------------------
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ----------------------------------------------------------------------
# 3️⃣ Logging setup function
# ----------------------------------------------------------------------
def get_logger(name: str = "tariff-comparator") -> logging.Logger:
    """
    Returns a configured logger instance that logs to both console and file.

    Parameters
    ----------
    name : str
        The name of the logger (typically the module name).

    Returns
    -------
    logging.Logger
        Configured logger object.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    # Avoid duplicate handlers
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        file_handler = logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


if __name__ == "__main__":
    test_logger = get_logger("logger_test")
    test_logger.info("✅ Logger initialized successfully.")
    test_logger.warning("⚠️ This is a sample warning.")
    print(f"Logs saved to: {LOG_FILE}")
