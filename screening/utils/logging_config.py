"""
Logging setup for the screening service.

Everything logs under the "screening." namespace. configure_for_environment()
picks a profile from ENVIRONMENT (production, development, testing) and
LOG_LEVEL; files go to LOG_DIR with a separate errors-only file.
"""
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

LOG_FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(funcName)-20s:%(lineno)-4d | %(message)s",
    "json": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}

ENVIRONMENT_PROFILES: Dict[str, Dict[str, Any]] = {
    "production": {"enable_file": True, "format_style": "detailed"},
    "development": {"level": "DEBUG", "enable_file": True, "format_style": "detailed"},
    "testing": {"level": "WARNING", "enable_file": False, "format_style": "simple"},
}

# Third-party loggers that are chatty at DEBUG/INFO
NOISY_LOGGERS = ("pymongo", "pdfminer", "httpx", "urllib3")

MAX_LOG_BYTES = 10 * 1024 * 1024


def _file_handler(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
        "encoding": "utf8",
    }


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed",
) -> None:
    """
    Apply a dictConfig for the service and uvicorn

    Args:
        level: Root level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (LOG_DIR or ./logs)
        enable_console: Log to stdout
        enable_file: Log to screening_<date>.log plus screening_errors_<date>.log
        format_style: 'simple', 'detailed' or 'json'
    """
    handlers: Dict[str, Dict[str, Any]] = {}
    names: List[str] = []

    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style if format_style in LOG_FORMATS else "detailed",
            "stream": "ext://sys.stdout",
        }
        names.append("console")

    log_file = None
    if enable_file:
        directory = Path(log_dir or os.getenv("LOG_DIR", "logs"))
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        log_file = directory / f"screening_{stamp}.log"
        handlers["file"] = _file_handler(log_file, level)
        handlers["error_file"] = _file_handler(directory / f"screening_errors_{stamp}.log", "ERROR")
        names += ["file", "error_file"]

    loggers: Dict[str, Dict[str, Any]] = {
        "": {"level": level, "handlers": names, "propagate": False},
        "uvicorn": {"level": "INFO", "handlers": [n for n in names if n != "error_file"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": [n for n in names if n == "console"], "propagate": False},
    }
    for name in NOISY_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            style: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for style, fmt in LOG_FORMATS.items()
        },
        "handlers": handlers,
        "loggers": loggers,
    })

    logger = get_logger("logging")
    logger.info(f"Logging configured - Level: {level}, Console: {enable_console}, File: {log_file or 'off'}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the "screening." namespace (module names already in it are kept)."""
    if name == "screening" or name.startswith("screening."):
        return logging.getLogger(name)
    return logging.getLogger(f"screening.{name}")


def configure_for_environment():
    """Configure logging from ENVIRONMENT and LOG_LEVEL"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    options = {"level": os.getenv("LOG_LEVEL", "INFO").upper()}
    options.update(ENVIRONMENT_PROFILES.get(environment, {}))
    setup_logging(**options)


class PerformanceMonitor:
    """Times a block and logs it; slow blocks are logged as warnings."""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
