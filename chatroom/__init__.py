"""
Chat Room Server Package
Presence tracking, message storage and inactivity eviction
"""

from .config import Settings, load_settings
from .errors import (
    ChatError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UpstreamStorageError,
    ValidationError,
)
from .models import ChatMessage, MessageDraft, MessageKind, Participant
from .sanitizer import sanitize_text, sanitize_payload
from .storage import Database, connect
from .message_store import MessageStore
from .registry import ParticipantRegistry
from .visibility import is_visible_to, visible_messages
from .sweeper import InactivitySweeper
from .handlers import ChatHandlers
from .service import ChatRoom, build_chat_room, start_chat_room
from .logger import (
    configure_logging,
    get_logger,
    log_security_event,
    log_participant_event,
    log_message_event,
    log_sweep_event,
    log_system_event
)

__all__ = [
    'Settings',
    'load_settings',
    'ChatError',
    'ConfigurationError',
    'ConflictError',
    'ForbiddenError',
    'NotFoundError',
    'UpstreamStorageError',
    'ValidationError',
    'ChatMessage',
    'MessageDraft',
    'MessageKind',
    'Participant',
    'sanitize_text',
    'sanitize_payload',
    'Database',
    'connect',
    'MessageStore',
    'ParticipantRegistry',
    'is_visible_to',
    'visible_messages',
    'InactivitySweeper',
    'ChatHandlers',
    'ChatRoom',
    'build_chat_room',
    'start_chat_room',
    'configure_logging',
    'get_logger',
    'log_security_event',
    'log_participant_event',
    'log_message_event',
    'log_sweep_event',
    'log_system_event'
]
