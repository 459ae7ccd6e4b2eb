from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(slots=True)
class LoggingOrchestrator:
    """Operational log for the lounge: console output plus an optional file in the data directory.

    Recoverable failures (log store I/O, member enrolment, missing log entries)
    are reported here instead of being raised to the operator.
    """

    logger_name: str = "lounge"
    log_file: Path | None = None
    logger: logging.Logger = field(init=False)

    def __post_init__(self) -> None:
        self.logger = logging.getLogger(self.logger_name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)
        if self.log_file is not None and not self._has_file_handler():
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(file_handler)

    def _has_file_handler(self) -> bool:
        target = os.path.abspath(self.log_file)
        return any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == target
            for handler in self.logger.handlers
        )

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)
