# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging setup for Dead Project Finder."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each entry records the emitting thread, so lines from concurrent walker
    threads (named walker_0, walker_1, ...) can be told apart.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_data: Dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
) -> None:
    """Set up logging for a run.

    Diagnostics go to stderr so that the report written to stdout stays
    machine-readable.

    Args:
        log_dir: Directory for JSON log files. If None, no log file is written.
        log_level: Logging level (default: INFO)
        console_output: Whether to also output to console (default: True)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    root_logger.handlers.clear()

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = (
            log_dir / f"dead_project_finder_{datetime.now(timezone.utc).strftime('%Y%m%d')}.log"
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root_logger.addHandler(console_handler)

    if log_dir is not None:
        logging.getLogger(__name__).debug(f"Logging initialized. Log directory: {log_dir}")
