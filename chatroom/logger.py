"""
Logging configuration for the chat room service
"""

import logging
import sys
from typing import Iterable, Optional

from .constants import LOG_LEVEL

LOGGER_NAME = "chatroom"


class SecureFormatter(logging.Formatter):
    """Formatter that masks credentials that end up in log lines"""

    def format(self, record):
        message = super().format(record)
        sanitized = message.replace('password=', 'password=***')
        sanitized = sanitized.replace('token=', 'token=***')
        return sanitized


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance with the service formatting

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)

        formatter = SecureFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)

        logger.propagate = False

    return logger


def configure_logging(level: str) -> logging.Logger:
    """Apply the configured level to the service logger"""
    logger = get_logger()
    logger.setLevel(level.upper())
    return logger


def log_security_event(event_type: str, details: dict, logger: Optional[logging.Logger] = None):
    """
    Log rejected input and ownership violations

    Args:
        event_type: Type of security event
        details: Event details
        logger: Logger instance (optional)
    """
    if logger is None:
        logger = get_logger()

    logger.warning(f"SECURITY_EVENT: {event_type} | {details}")


def log_participant_event(name: str, action: str, details: str = ""):
    """
    Log participant lifecycle events (join/heartbeat/evict)

    Args:
        name: Participant name
        action: Lifecycle action
        details: Additional details
    """
    logger = get_logger()
    logger.info(f"PARTICIPANT_EVENT: {action} | name={name} | {details}")


def log_message_event(message_id: str, sender: str, action: str, details: str = ""):
    """
    Log message store events

    Args:
        message_id: Unique message identifier
        sender: Message owner
        action: Action (append/update/delete)
        details: Additional details
    """
    logger = get_logger()
    logger.info(f"MESSAGE_EVENT: {action} | id={message_id[:8]}... | from={sender} | {details}")


def log_sweep_event(evicted: Iterable[str], failures: int = 0, duration_ms: float = 0.0):
    """
    Log the outcome of one sweeper tick

    Args:
        evicted: Names removed during the tick
        failures: Number of departure notices that could not be stored
        duration_ms: Tick duration in milliseconds
    """
    logger = get_logger()
    names = sorted(evicted)
    log_message = f"SWEEP_EVENT: evicted={len(names)} | failures={failures} | duration={duration_ms:.2f}ms"
    if names:
        logger.info(f"{log_message} | names={names}")
    else:
        logger.debug(log_message)


def log_system_event(event_type: str, details: str, level: str = "info"):
    """
    Log system-level events

    Args:
        event_type: Type of system event
        details: Event details
        level: Log level (info/warning/error)
    """
    logger = get_logger()
    log_message = f"SYSTEM_EVENT: {event_type} | {details}"

    if level == "warning":
        logger.warning(log_message)
    elif level == "error":
        logger.error(log_message)
    else:
        logger.info(log_message)
