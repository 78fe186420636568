"""
Visibility rules for stored messages
"""

from typing import Iterable, List, Optional

from .models import ChatMessage, MessageKind

# Kinds every participant can read regardless of addressee
PUBLIC_KINDS = frozenset({MessageKind.BROADCAST, MessageKind.STATUS})


def is_visible_to(message: ChatMessage, requester: Optional[str]) -> bool:
    """
    Decide whether requester may read message

    Broadcast and status messages are public. A private message is
    visible to its sender and its addressee only.
    """
    if message.kind in PUBLIC_KINDS:
        return True
    if requester is None:
        return False
    return requester in (message.to, message.sender)


def visible_messages(messages: Iterable[ChatMessage], requester: Optional[str],
                     limit: Optional[int] = None) -> List[ChatMessage]:
    """
    Filter messages for requester, keeping chronological order

    Args:
        messages: Messages in creation order
        requester: Identity asking, or None for anonymous readers
        limit: Keep only the most recent `limit` matches

    Returns:
        Matching messages, oldest first
    """
    visible = [message for message in messages if is_visible_to(message, requester)]
    if limit is not None:
        visible = visible[-limit:] if limit > 0 else []
    return visible
