"""
Structured logging system for the marketplace ledger.

Provides centralized logging with console and file outputs, plus
in-process metrics for payment and deposit operations.
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off", "")


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for money-moving operations.
    """

    def __init__(
        self,
        name: str = "jobmarket",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        # Workflows run concurrently; counters are updated under this lock
        self._metrics_lock = threading.Lock()
        self.metrics = {
            "operations_attempted": 0,
            "operations_succeeded": 0,
            "operations_failed": 0,
            "retries": 0,
            "errors_by_kind": {},
            "operation_success_rate": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobmarket_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(threadName)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_attempt(self, operation: str):
        """Record an attempt of a workflow operation (pay_job, deposit, transfer)."""
        with self._metrics_lock:
            self.metrics["operations_attempted"] += 1
            stats = self.metrics["operation_success_rate"].setdefault(
                operation, {"attempts": 0, "successes": 0}
            )
            stats["attempts"] += 1

    def record_success(self, operation: str):
        """Record a committed operation."""
        with self._metrics_lock:
            self.metrics["operations_succeeded"] += 1
            if operation in self.metrics["operation_success_rate"]:
                self.metrics["operation_success_rate"][operation]["successes"] += 1

    def record_failure(self, operation: str, error_kind: str):
        """Record a failed operation by error kind."""
        with self._metrics_lock:
            self.metrics["operations_failed"] += 1
            errors = self.metrics["errors_by_kind"]
            errors[error_kind] = errors.get(error_kind, 0) + 1

    def record_retry(self):
        """Increment the storage retry counter."""
        with self._metrics_lock:
            self.metrics["retries"] += 1

    def get_metrics(self) -> dict:
        """Return a snapshot of current metrics with success rates filled in."""
        with self._metrics_lock:
            metrics_copy = json.loads(json.dumps(self.metrics))
        for operation, stats in metrics_copy["operation_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["operations_attempted"]
        total_successes = metrics["operations_succeeded"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Ledger Session Metrics ===")
        self.info(f"Operations: {total_successes}/{total_attempts} ({overall_rate}% success)")
        self.info(f"Storage retries: {metrics['retries']}")

        if metrics["operation_success_rate"]:
            self.info("Operation Success Rates:")
            for operation, stats in metrics["operation_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {operation}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_kind"]:
            self.info("Error Kinds:")
            for error_kind, count in metrics["errors_by_kind"].items():
                self.info(f"  {error_kind}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None
_global_logger_lock = threading.Lock()


def get_logger(
    name: str = "jobmarket",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Unset options fall back to JOBMARKET_LOG_LEVEL, JOBMARKET_LOG_TO_FILE
    and JOBMARKET_LOG_DIR.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    with _global_logger_lock:
        if _global_logger is None:
            if level is None:
                level = os.getenv("JOBMARKET_LOG_LEVEL", "INFO")
            kwargs.setdefault("enable_file", _env_flag("JOBMARKET_LOG_TO_FILE", True))
            if "log_dir" not in kwargs and os.getenv("JOBMARKET_LOG_DIR"):
                kwargs["log_dir"] = Path(os.environ["JOBMARKET_LOG_DIR"])
            _global_logger = StructuredLogger(name=name, level=level, **kwargs)
        return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    with _global_logger_lock:
        _global_logger = None
