"""
Structured logging system for TalentFlow.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring how often mutations commit or roll back.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for every unit of work the store runs.
    """

    def __init__(
        self,
        name: str = "talentflow",
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
        self.logger.handlers.clear()  # Remove existing handlers

        # Metrics tracking
        self.metrics = {
            "mutations_attempted": 0,
            "mutations_committed": 0,
            "mutations_rolled_back": 0,
            "errors_by_type": {},
            "operation_stats": {},
        }

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"talentflow_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
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

    def record_mutation_attempt(self, operation: str):
        """Record that a unit of work was opened for an operation."""
        self.metrics["mutations_attempted"] += 1
        if operation not in self.metrics["operation_stats"]:
            self.metrics["operation_stats"][operation] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["operation_stats"][operation]["attempts"] += 1

    def record_mutation_commit(self, operation: str):
        """Record a committed unit of work."""
        self.metrics["mutations_committed"] += 1
        if operation in self.metrics["operation_stats"]:
            self.metrics["operation_stats"][operation]["successes"] += 1

    def record_mutation_rollback(self, operation: str, error_type: str):
        """Record a rolled back unit of work."""
        self.metrics["mutations_rolled_back"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        for operation, stats in metrics_copy["operation_stats"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["mutations_attempted"]
        total_commits = metrics["mutations_committed"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_commits / total_attempts * 100, 1)

        self.info("=== Store Session Metrics ===")
        self.info(f"Mutations: {total_commits}/{total_attempts} committed ({overall_rate}%)")
        self.info(f"Rolled back: {metrics['mutations_rolled_back']}")

        if metrics["operation_stats"]:
            self.info("Operation Success Rates:")
            for operation, stats in metrics["operation_stats"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {operation}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "talentflow",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
