"""
Centralized Logging Configuration for the Marketplace API

Everything logs under the ``marketplace.`` namespace. Levels for individual
loggers can be overridden per deployment with ``LOG_LEVELS``, e.g.
``LOG_LEVELS="marketplace.services.suggestions=DEBUG,pymongo=INFO"``.
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

# Driver loggers are chatty at DEBUG; keep them quiet unless asked for
DEFAULT_LOGGER_LEVELS = {
    "pymongo": "WARNING",
    "motor": "WARNING",
}


def parse_logger_levels(raw: Optional[str]) -> Dict[str, str]:
    """Parse ``name=LEVEL`` pairs separated by commas. Malformed pairs are ignored."""
    levels: Dict[str, str] = {}
    if not raw:
        return levels
    for pair in raw.split(","):
        name, sep, level = pair.partition("=")
        name, level = name.strip(), level.strip().upper()
        if sep and name and isinstance(logging.getLevelName(level), int):
            levels[name] = level
    return levels


def _handler(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(filename),
        "maxBytes": 10485760,  # 10MB
        "backupCount": 5,
        "encoding": "utf8"
    }


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed",
    logger_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Setup centralized logging configuration

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (defaults to $LOG_DIR/marketplace_<date>.log)
        enable_console: Enable console logging
        enable_file: Enable file and error-file logging
        format_style: Format style ('simple', 'detailed', 'json')
        logger_levels: Per-logger level overrides, applied over DEFAULT_LOGGER_LEVELS
    """

    # Logs directory only matters when files are written
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    if enable_file:
        log_dir.mkdir(exist_ok=True)

    # Default log file
    if log_file is None:
        log_file = log_dir / f"marketplace_{datetime.now().strftime('%Y%m%d')}.log"

    # Format configurations
    formats = {
        "simple": "%(levelname)s - %(name)s - %(message)s",
        "detailed": "%(asctime)s | %(levelname)-8s | %(name)-40s | %(funcName)-20s:%(lineno)-4d | %(message)s",
        "json": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}'
    }

    root_handlers = []
    handlers: Dict[str, Any] = {}

    # Console handler
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "simple" if format_style == "simple" else "detailed",
            "stream": "ext://sys.stdout"
        }
        root_handlers.append("console")

    # File handler, plus a separate file for errors and above
    if enable_file:
        handlers["file"] = _handler(Path(log_file), level)
        handlers["error_file"] = _handler(
            log_dir / f"marketplace_errors_{datetime.now().strftime('%Y%m%d')}.log", "ERROR"
        )
        root_handlers.extend(["file", "error_file"])

    # uvicorn writes through the same handlers, minus the error file
    uvicorn_handlers = [name for name in root_handlers if name != "error_file"]

    loggers: Dict[str, Any] = {
        "": {"level": level, "handlers": root_handlers, "propagate": False},  # Root logger
        "uvicorn": {"level": "INFO", "handlers": uvicorn_handlers, "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": [h for h in uvicorn_handlers if h == "console"], "propagate": False},
    }

    # Per-logger overrides propagate to the root handlers
    overrides = {**DEFAULT_LOGGER_LEVELS, **(logger_levels or {})}
    for name, override in overrides.items():
        loggers[name] = {"level": override, "propagate": True}

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": formats.get(format_style, formats["detailed"]),
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "simple": {
                "format": formats["simple"]
            }
        },
        "handlers": handlers,
        "loggers": loggers
    }

    # Apply configuration
    logging.config.dictConfig(config)

    # Log the configuration setup
    logger = logging.getLogger("marketplace.logging")
    logger.info(f"Logging configured - Level: {level}, Console: {enable_console}, File: {enable_file}")
    if enable_file:
        logger.info(f"Log file: {log_file}")
    if logger_levels:
        logger.info(f"Logger overrides: {logger_levels}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with consistent naming

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger under the ``marketplace.`` namespace
    """
    if name.startswith("marketplace."):
        return logging.getLogger(name)
    return logging.getLogger(f"marketplace.{name}")


def log_api_call(operation: str):
    """
    Decorator to log API endpoint calls.

    FastAPI passes endpoint arguments by keyword, so the request (when the
    endpoint declares one) is found in ``kwargs`` and its request id is
    attached to every line.
    """
    def decorator(func):

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(f"api.{func.__module__}")
            start_time = time.time()

            # Request info if the endpoint takes the request
            request = kwargs.get("request")
            context = {"operation": operation}
            if request is not None:
                context["request_id"] = getattr(request.state, "request_id", "unknown")
                context["path"] = request.url.path

            logger.info(f"API {operation} started - {func.__name__}", extra=context)

            try:
                result = await func(*args, **kwargs)
                execution_time = time.time() - start_time
                logger.info(f"API {operation} completed in {execution_time:.3f}s",
                            extra={**context, "execution_time": execution_time})
                return result
            except Exception as e:
                execution_time = time.time() - start_time
                logger.error(f"API {operation} failed after {execution_time:.3f}s: {str(e)}",
                             extra={**context, "execution_time": execution_time, "error": str(e)})
                raise

        return wrapper
    return decorator


# Environment-based configuration
def configure_for_environment():
    """Configure logging based on ENVIRONMENT, LOG_LEVEL and LOG_LEVELS"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger_levels = parse_logger_levels(os.getenv("LOG_LEVELS"))

    if environment == "production":
        setup_logging(
            level=log_level,
            enable_console=True,
            enable_file=True,
            format_style="detailed",
            logger_levels=logger_levels
        )
    elif environment == "development":
        setup_logging(
            level="DEBUG",
            enable_console=True,
            enable_file=True,
            format_style="detailed",
            logger_levels=logger_levels
        )
    elif environment == "testing":
        # No log files from test runs
        setup_logging(
            level="WARNING",
            enable_console=True,
            enable_file=False,
            format_style="simple",
            logger_levels=logger_levels
        )
    else:
        # Default configuration
        setup_logging(level=log_level, logger_levels=logger_levels)


# Performance monitoring context manager
class PerformanceMonitor:
    """
    Context manager that times a block and logs the outcome.

    Extra keyword arguments (team id, engagement id, ...) are attached to the
    log record. ``elapsed_ms`` is available after the block exits.
    """

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000, **context):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.context = context
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.debug(f"Starting {self.operation_name}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.time() - self.start_time) * 1000  # Convert to milliseconds
        extra = {**self.context, "elapsed_ms": self.elapsed_ms}

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}", extra=extra)
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms (exceeded threshold {self.threshold_ms}ms)",
                extra=extra
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms", extra=extra)
