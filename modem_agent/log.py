"""Timestamped run log: console plus an append-only file"""
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Optional

from modem_agent.config import ModemConfig


class ISOFormatter(logging.Formatter):
    """Render records as '<ISO-8601 UTC timestamp>: <message>'"""

    def formatTime(self, record, datefmt=None):
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record):
        return f"{self.formatTime(record)}: {record.getMessage()}"


class AppendOnlyFileHandler(logging.FileHandler):
    """
    Append-only file handler without rotation.
    A failed write is re-raised to the caller instead of being printed
    and dropped by logging.Handler.handleError.
    """

    def __init__(self, filename):
        super().__init__(filename, mode="a", encoding="utf-8")

    def handleError(self, record):
        raise


class ResetLogger:
    def __init__(self, log_file, stream: Optional[IO[str]] = None, name: str = "modem_reset"):
        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        # Clear existing handlers
        self.close()

        formatter = ISOFormatter()

        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        file_handler = AppendOnlyFileHandler(self.log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

    def record(self, message: str):
        self.logger.info(message)

    def error(self, message: str):
        self.logger.error(message)

    def close(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()


def get_logger(config: ModemConfig, stream: Optional[IO[str]] = None) -> ResetLogger:
    """Factory function to create the run logger from config"""
    return ResetLogger(config.log_file, stream=stream)
