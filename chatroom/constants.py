"""
Protocol constants for the chat room service
"""

# Broadcast sentinel and system notices
BROADCAST_TARGET = "Todos"
STATUS_ENTERED_TEXT = "entra na sala..."
STATUS_LEFT_TEXT = "sai da sala..."
TIME_FORMAT = "%H:%M:%S"

# Identity header (looked up case-insensitively)
IDENTITY_HEADER = "User"

# Wire names for message types
WIRE_BROADCAST = "message"
WIRE_PRIVATE = "private_message"
WIRE_STATUS = "status"

# Payload limits
MIN_NAME_LENGTH = 1

# Collection names
PARTICIPANTS_COLLECTION = "participants"
MESSAGES_COLLECTION = "messages"

# Sweeper defaults
DEFAULT_INACTIVITY_THRESHOLD_SECONDS = 10
DEFAULT_SWEEP_INTERVAL_SECONDS = 15

# Logging levels
LOG_LEVEL = "INFO"

# Error messages
ERROR_MESSAGES = {
    "invalid_participant": "Participant name must be a non-empty string",
    "invalid_message": "Message must have non-empty 'to' and 'text' and a valid 'type'",
    "invalid_limit": "Limit must be a positive integer",
    "missing_identity": "Missing User header",
    "inactive_sender": "Sender is not an active participant",
    "duplicate_name": "Participant name already in use",
    "unknown_participant": "Participant not found",
    "unknown_message": "Message not found",
    "not_owner": "Only the author may change this message",
    "storage_failure": "Internal server error",
}
