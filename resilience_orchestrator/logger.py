"""
Structured JSON logging for validation batches.

Every line written to the rotating log file is a JSON object carrying the
batch run id, so a dashboard or log shipper can group entry-level events
back into the batch that produced them.
"""

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record"""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "run_id": self.run_id,
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "thread": record.threadName,
        }

        if record.exc_info:
            exc_info = (
                record.exc_info if isinstance(record.exc_info, tuple) else sys.exc_info()
            )
            if exc_info and exc_info[0] is not None:
                log_data["exception"] = {
                    "type": exc_info[0].__name__,
                    "message": str(exc_info[1]),
                    "traceback": self.formatException(exc_info),
                }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ProductionLogger:
    """
    Batch logger with structured JSON output and log rotation.

    - JSON lines to ``<logs_dir>/resilience.log`` (10MB, 10 backups)
    - Human-readable lines to the console
    - ``log_event`` attaches arbitrary structured fields to a record
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_level: str = "INFO",
        logs_dir: Union[str, Path] = "logs",
        console: bool = True,
    ):
        self.run_id = run_id or self._generate_run_id()
        self.log_level = getattr(logging, log_level.upper())
        self.logs_dir = Path(logs_dir)
        self._setup_logging(console)

    def _generate_run_id(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}-{str(uuid.uuid4())[:8]}"

    def _setup_logging(self, console: bool) -> None:
        self.logs_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(f"resilience.{self.run_id}")
        self.logger.setLevel(self.log_level)

        # Reuse handlers when the same run id is requested twice
        if self.logger.handlers:
            return

        json_handler = RotatingFileHandler(
            self.logs_dir / "resilience.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
        )
        json_handler.setFormatter(JSONFormatter(self.run_id))
        json_handler.setLevel(self.log_level)
        self.logger.addHandler(json_handler)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
            console_handler.setLevel(self.log_level)
            self.logger.addHandler(console_handler)

        self.logger.propagate = False

    def _emit(self, level: int, message: str, exc_info: Any, fields: Dict[str, Any]) -> None:
        record = self.logger.makeRecord(
            name=self.logger.name,
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=exc_info,
        )
        record.extra_data = fields
        self.logger.handle(record)

    def log_event(self, level: str, message: str, **kwargs) -> None:
        """
        Log structured event with additional context

        Args:
            level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            message: Human-readable log message
            **kwargs: Additional structured data to include in JSON
        """
        self._emit(getattr(logging, level.upper()), message, None, kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self.log_event("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.log_event("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.log_event("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.log_event("ERROR", message, **kwargs)

    def critical(self, message: str, **kwargs) -> None:
        self.log_event("CRITICAL", message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log the exception currently being handled with its traceback"""
        self._emit(logging.ERROR, message, sys.exc_info(), kwargs)

    def get_run_id(self) -> str:
        return self.run_id

    def close(self) -> None:
        """Close all handlers and cleanup"""
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)


def get_logger(
    run_id: Optional[str] = None,
    log_level: str = "INFO",
    logs_dir: Union[str, Path] = "logs",
) -> ProductionLogger:
    """
    Factory function to get a configured production logger

    Args:
        run_id: Optional run ID. Generated if not provided.
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logs_dir: Directory for the rotating JSON log file

    Returns:
        Configured ProductionLogger instance
    """
    return ProductionLogger(run_id=run_id, log_level=log_level, logs_dir=logs_dir)
