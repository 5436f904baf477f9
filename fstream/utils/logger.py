"""
Logging configuration with multi-handler setup and structured event logging
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Generator

EVENTS_LOGGER = "events"


class EventLogFilter(logging.Filter):
    """
    Filter to isolate stream events from general logging

    Only allows log records with logger name 'events' to pass through
    to the event-specific handler.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name == EVENTS_LOGGER


class StreamLogger:
    """
    Centralized logging setup for the stream client

    Features:
    - Multi-handler logging (console, file, event-specific)
    - Automatic log rotation (size-based and time-based)
    - Structured JSON logging for decoded events
    """

    def __init__(self, config: dict):
        """
        Initialize logging infrastructure

        Args:
            config: Configuration dictionary with keys:
                - log_level: str (DEBUG, INFO, WARNING, ERROR)
                - log_dir: str (directory path for log files, relative
                  paths resolve against the current working directory)

        Raises:
            OSError: If log directory creation fails
        """
        self.log_level = config.get('log_level', 'INFO')
        self.log_dir = Path(config.get('log_dir', 'logs'))
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    def _setup_logging(self) -> None:
        """
        Configure root logger with all handlers

        Sets up:
        1. Console handler (INFO+, simple format)
        2. Rotating file handler (DEBUG+, detailed format)
        3. Event-specific handler (INFO, JSON lines, daily rotation)
        """
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, self.log_level.upper()))

        # Clear existing handlers to avoid duplicates
        root_logger.handlers.clear()

        log_format = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(log_format)
        root_logger.addHandler(console_handler)

        # 10MB max, 5 backups
        file_handler = RotatingFileHandler(
            self.log_dir / 'stream.log',
            maxBytes=10*1024*1024,
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(log_format)
        root_logger.addHandler(file_handler)

        # Daily rotation, 30-day retention
        event_handler = TimedRotatingFileHandler(
            self.log_dir / 'events.log',
            when='midnight',
            backupCount=30
        )
        event_handler.setLevel(logging.INFO)
        event_handler.addFilter(EventLogFilter())
        root_logger.addHandler(event_handler)

        # websocket-client logs every frame at DEBUG
        logging.getLogger("websocket").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    @staticmethod
    def log_event(kind: str, data: dict) -> None:
        """
        Log a decoded stream event as one JSON line

        Args:
            kind: Event kind (e.g. 'trade', 'kline')
            data: JSON-serializable event data

        Example:
            StreamLogger.log_event('trade', {
                'stream': 'btcusdt@aggTrade',
                'symbol': 'BTCUSDT',
                'price': 50000.0,
            })
        """
        logger = logging.getLogger(EVENTS_LOGGER)
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'kind': kind,
            **data
        }
        logger.info(json.dumps(log_entry, default=str))


@contextmanager
def log_execution_time(operation: str) -> Generator[None, None, None]:
    """
    Context manager for measuring and logging execution time

    Usage:
        with log_execution_time('classify_frame'):
            event = classifier.classify(text)

    Logs at DEBUG level: "{operation} completed in {elapsed:.3f}s"
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logging.debug(f"{operation} completed in {elapsed:.3f}s")
