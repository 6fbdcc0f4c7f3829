"""
Logging utilities for the autoctx engine.

Provides unified structured logging:
- pretty console output via Rich (stderr)
- structured (JSON) file output to `replay.log` when running `autoctx replay`
"""

import logging
import sys
import json
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# CLI commands whose runs are also written to {cwd}/<command>.log
FILE_LOGGED_COMMANDS = ("replay",)


class JSONFormatter(logging.Formatter):
    """
    Formatter that serializes log records to JSON.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level":     record.levelname,
            "logger":    record.name,
            "message":   record.getMessage(),
        }
        session = getattr(record, "session", None)
        if session is not None:
            log_record["session"] = session
        return json.dumps(log_record)


def get_logger(name: str, level: int | str = logging.INFO) -> logging.Logger:
    """
    Return a configured logger for the given name.

    Attaches:
    - a RichHandler writing to stderr
    - when the command is 'replay', a FileHandler writing JSON logs to {cwd}/replay.log

    Parameters
    ----------
    name
        Logger name (typically __name__).
    level
        Log level (int or string), defaults to INFO.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        # Console via Rich; stdout is reserved for `replay --json` output
        console_handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

        # File output for `autoctx replay`, as structured JSON
        if len(sys.argv) > 1 and sys.argv[1] in FILE_LOGGED_COMMANDS:
            log_path = Path.cwd() / f"{sys.argv[1]}.log"
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)

    return logger
