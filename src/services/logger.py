"""
Logger Service Module
Diagnostic logging for the session client: colored console, rotating files
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import colorlog

from config import config as app_config

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class LoggerService:
    """
    Installs the process-wide handlers:
    - Console (colored via colorlog when enabled)
    - client.log, rotating, everything at file level
    - errors.log, rotating, ERROR and above
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = self._default_config()
        if config:
            self.config.update(config)
        self.handlers: list[logging.Handler] = []

        self.log_dir = Path(self.config["log_dir"]).expanduser()
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            if not os.access(self.log_dir, os.W_OK):
                raise PermissionError(f"Log directory not writable: {self.log_dir}")
        except OSError:
            self.log_dir = Path("./logs")
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_root_logger()

    def _default_config(self) -> dict[str, Any]:
        return {
            "log_dir": app_config.LOGGING["log_dir"],
            "log_level": app_config.LOGGING["level"],
            "file_level": "DEBUG",
            "max_bytes": app_config.LOGGING["max_bytes"],
            "backup_count": app_config.LOGGING["backup_count"],
            "format": app_config.LOGGING["format"],
            "date_format": app_config.LOGGING["date_format"],
            "colored_output": app_config.LOGGING["colored_output"],
            "json_logs": app_config.LOGGING["json_logs"],
        }

    def _setup_root_logger(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)  # filtered per handler

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)

        self._install(root_logger, self._create_console_handler())
        self._install(root_logger, self._create_file_handler("client.log"))
        self._install(root_logger, self._create_file_handler("errors.log", level=logging.ERROR))

    def _install(self, logger: logging.Logger, handler: logging.Handler):
        logger.addHandler(handler)
        self.handlers.append(handler)

    def _create_console_handler(self) -> logging.Handler:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(_level(self.config["log_level"]))

        if self.config.get("colored_output"):
            formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + self.config["format"],
                datefmt=self.config["date_format"],
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )
        else:
            formatter = logging.Formatter(self.config["format"], datefmt=self.config["date_format"])

        console_handler.setFormatter(formatter)
        return console_handler

    def _create_file_handler(self, filename: str, level: int | None = None) -> logging.Handler:
        """Rotating file handler, or stderr when the file cannot be opened."""
        try:
            handler: logging.Handler = RotatingFileHandler(
                self.log_dir / filename,
                maxBytes=self.config["max_bytes"],
                backupCount=self.config["backup_count"],
            )
        except OSError:
            handler = logging.StreamHandler(sys.stderr)

        handler.setLevel(level or _level(self.config["file_level"]))

        if self.config.get("json_logs"):
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(
                logging.Formatter(self.config["format"], datefmt=self.config["date_format"])
            )
        return handler

    def set_level(self, level: str, logger_name: str | None = None):
        logging.getLogger(logger_name).setLevel(_level(level))

    def cleanup(self):
        """Detach and close every handler this service installed."""
        root_logger = logging.getLogger()
        for handler in self.handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()


class JsonFormatter(logging.Formatter):
    """One JSON object per record, `extra` fields included"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


_logger_service: LoggerService | None = None


def setup_logging(config: dict | None = None) -> logging.Logger:
    """
    Configure process-wide logging once and return the root logger

    Args:
        config: Overrides for the LOGGING section (e.g. {"log_dir": ...})
    """
    global _logger_service

    if _logger_service is None:
        _logger_service = LoggerService(config)

    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    if _logger_service is None:
        setup_logging()
    return logging.getLogger(name)


def cleanup_logging():
    global _logger_service

    if _logger_service is not None:
        _logger_service.cleanup()
        _logger_service = None
