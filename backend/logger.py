import logging
import sys
import os
from logging.handlers import RotatingFileHandler

# Log directory can be moved out of the source tree (installed copies, CI)
LOGS_DIR = os.environ.get(
    "DAYPLANNER_LOG_DIR",
    os.path.join(os.path.dirname(__file__), "logs")
)
LOG_FILE_NAME = "planner.log"


class CustomFormatter(logging.Formatter):
    """Colored console output; the file handler stays plain"""

    grey = "\x1b[38;20m"
    blue = "\x1b[34;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, "")
        formatter = logging.Formatter(color + self.format_str + self.reset, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)


def level_from_env(default: int = logging.INFO) -> int:
    """Resolve DAYPLANNER_LOG_LEVEL ("debug", "WARNING", ...) to a logging level."""
    name = os.environ.get("DAYPLANNER_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def setup_logger(
    name: str = "dayplanner",
    level: int = logging.INFO,
    log_dir: str = LOGS_DIR,
) -> logging.Logger:
    """Console plus rotating file logger for the planner backend"""

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Importing several planner modules must not stack handlers
    if logger.hasHandlers():
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(CustomFormatter())
    logger.addHandler(console_handler)

    # 5MB per file, last 5 kept
    os.makedirs(log_dir, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, LOG_FILE_NAME),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(file_handler)

    return logger


# Global logger instance
logger = setup_logger(level=level_from_env())
