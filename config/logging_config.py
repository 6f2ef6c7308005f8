"""
Centralized logging configuration for the Swift Sage voice assistant.

This module provides a function to set up application-wide logging,
including formatting, log levels, and handlers for console and file output.
Every record is rendered as a single JSON line so request-level context
(interaction id, pipeline stage, provider names) can be filtered without
parsing free text.
"""

import logging
import logging.handlers # Required for RotatingFileHandler
import sys
import json
from pathlib import Path

# Attributes present on every LogRecord; anything else arrived via `extra=`.
_STANDARD_RECORD_ATTRS = set(
    logging.LogRecord('', logging.INFO, '', 0, '', (), None).__dict__
) | {'message', 'asctime'}


class StructuredLogFormatter(logging.Formatter):
    """
    Formatter that renders each record as a JSON object.

    Features:
    - Includes interaction_id and stage when the record carries them
    - Copies any other `extra` fields (tool names, provider ids, latencies)
    - Preserves standard log fields (timestamp, level, logger, message)
    """

    def format(self, record):
        log_data = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_ATTRS or key.startswith('_'):
                continue
            log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


DEFAULT_LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its default context with per-call `extra`.

    The stock adapter replaces the caller's `extra` with its own; here the
    call-site values win so stage-specific fields are never dropped.
    """

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **(kwargs.get('extra') or {})}
        return msg, kwargs

    def bind(self, **context) -> 'ContextLoggerAdapter':
        """Return a new adapter with additional default context."""
        return ContextLoggerAdapter(self.logger, {**self.extra, **context})


def get_logger(name: str) -> ContextLoggerAdapter:
    """
    Get a logger with default request context.

    Args:
        name (str): Logger name (usually __name__)

    Returns:
        ContextLoggerAdapter: Adapter whose records always carry interaction_id and stage
    """
    return ContextLoggerAdapter(logging.getLogger(name), {
        'interaction_id': 'no_id',
        'stage': 'no_stage'
    })


def setup_app_logging(config: dict = None, default_level=logging.INFO) -> None:
    """
    Set up logging for the entire application.

    This function configures the root logger with handlers for console
    and file output. Log levels and file paths can be specified via
    the optional config dictionary.

    Args:
        config (dict, optional): A dictionary containing logging configurations.
                                Expected keys:
                                - 'level': String representation of log level (e.g., "DEBUG", "INFO").
                                - 'file_path': Path to the log file. Empty disables file logging.
                                - 'max_bytes': Max size of the log file before rotation.
                                - 'backup_count': Number of backup log files to keep.
                                - 'date_format': Custom log date format string.
        default_level (int, optional): The default logging level if not specified
                                     in the config. Defaults to logging.INFO.
    """
    if config is None:
        config = {}

    log_level_str = str(config.get('level', logging.getLevelName(default_level))).upper()
    numeric_log_level = getattr(logging, log_level_str, default_level)
    if not isinstance(numeric_log_level, int):
        print(f"Warning: Invalid log level string '{log_level_str}'. Using default level {logging.getLevelName(default_level)}.", file=sys.stderr)
        numeric_log_level = default_level

    log_date_format = config.get('date_format', DEFAULT_LOG_DATE_FORMAT)
    formatter = StructuredLogFormatter(datefmt=log_date_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_log_level)

    if root_logger.hasHandlers():
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file_path = config.get('file_path', '')
    if log_file_path:
        try:
            max_bytes = int(config.get('max_bytes', 5*1024*1024))
            backup_count = int(config.get('backup_count', 3))
            Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            print(f"Logging to file: {log_file_path} with level {log_level_str}", file=sys.stdout)
        except OSError as e:
            print(f"Error setting up file logging to {log_file_path}: {e}. File logging will be disabled.", file=sys.stderr)
    else:
        print("File logging is disabled as no 'file_path' was provided in logging config.", file=sys.stdout)

    # Quiet the HTTP client libraries; their DEBUG output includes request bodies.
    for noisy in ('httpx', 'httpcore', 'urllib3', 'openai'):
        logging.getLogger(noisy).setLevel(max(numeric_log_level, logging.WARNING))

    get_logger("LoggingConfig").info("Application logging setup complete. Level: %s", log_level_str)
