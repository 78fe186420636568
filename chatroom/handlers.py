"""
Request handlers: sanitize, validate, then call the registry or message store
"""

from typing import Any, Dict, List, Optional

from .constants import ERROR_MESSAGES, IDENTITY_HEADER
from .errors import NotFoundError, ValidationError
from .logger import log_security_event
from .message_store import MessageStore
from .registry import ParticipantRegistry
from .sanitizer import sanitize_payload, sanitize_text
from .validators import identity_errors, require_limit, require_message, require_participant

PARTICIPANT_FIELDS = ("name",)
MESSAGE_FIELDS = ("to", "text", "type")


class ChatHandlers:
    """Transport-independent handlers for the chat room operations"""

    def __init__(self, registry: ParticipantRegistry, messages: MessageStore):
        self.registry = registry
        self.messages = messages

    async def create_participant(self, body: Any) -> Dict[str, Any]:
        payload = require_participant(sanitize_payload(body, PARTICIPANT_FIELDS))
        participant = await self.registry.join(payload.name)
        return participant.to_dict()

    async def list_participants(self) -> List[Dict[str, Any]]:
        return [participant.to_dict() for participant in await self.registry.list()]

    async def post_message(self, identity: Optional[str], body: Any) -> Dict[str, Any]:
        """
        Store a message from an active participant

        Identity and body violations are reported together.

        Raises:
            ValidationError: invalid identity or body, or sender not active
        """
        sender = sanitize_text(identity)
        payload = require_message(sanitize_payload(body, MESSAGE_FIELDS), identity_errors(sender))

        if not await self.registry.is_active(sender):
            log_security_event("inactive_sender", {"sender": sender})
            raise ValidationError(
                [f"{IDENTITY_HEADER}: {ERROR_MESSAGES['inactive_sender']}"],
                ERROR_MESSAGES["inactive_sender"],
            )

        message = await self.messages.append(sender, payload.to_draft())
        return message.to_dict()

    async def list_messages(self, identity: Optional[str], limit: Any = None) -> List[Dict[str, Any]]:
        requester = sanitize_text(identity) or None
        parsed_limit = require_limit(limit)
        messages = await self.messages.query(requester, parsed_limit)
        return [message.to_dict() for message in messages]

    async def heartbeat(self, identity: Optional[str]) -> Dict[str, Any]:
        name = sanitize_text(identity)
        if identity_errors(name):
            raise NotFoundError(ERROR_MESSAGES["missing_identity"])
        participant = await self.registry.heartbeat(name)
        return participant.to_dict()

    async def update_message(self, message_id: str, identity: Optional[str], body: Any) -> Dict[str, Any]:
        payload = require_message(sanitize_payload(body, MESSAGE_FIELDS))
        requester = sanitize_text(identity) or None
        message = await self.messages.update_owned(message_id, requester, payload.to_draft())
        return message.to_dict()

    async def delete_message(self, message_id: str, identity: Optional[str]) -> None:
        requester = sanitize_text(identity) or None
        await self.messages.delete_owned(message_id, requester)

    async def health(self) -> Dict[str, int]:
        return {
            "participants": await self.registry.count(),
            "messages": await self.messages.count(),
        }
