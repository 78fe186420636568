"""
Data models for participants and chat messages
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import uuid

from .constants import TIME_FORMAT, WIRE_BROADCAST, WIRE_PRIVATE, WIRE_STATUS
from .tables import MessageRow, ParticipantRow


class MessageKind(str, Enum):
    BROADCAST = "broadcast"
    PRIVATE = "private"
    STATUS = "status"

    @property
    def wire_name(self) -> str:
        return _WIRE_NAMES[self]

    @classmethod
    def from_client(cls, value: str) -> "MessageKind":
        """Map a client-supplied type onto a kind clients may author"""
        try:
            return _CLIENT_KINDS[value]
        except KeyError:
            raise ValueError(f"Unknown message type: {value}")

    @classmethod
    def from_stored(cls, value: str) -> "MessageKind":
        return cls(value)


_WIRE_NAMES = {
    MessageKind.BROADCAST: WIRE_BROADCAST,
    MessageKind.PRIVATE: WIRE_PRIVATE,
    MessageKind.STATUS: WIRE_STATUS,
}

# status is system-generated and never accepted from a client
_CLIENT_KINDS = {
    WIRE_BROADCAST: MessageKind.BROADCAST,
    "broadcast": MessageKind.BROADCAST,
    WIRE_PRIVATE: MessageKind.PRIVATE,
    "private": MessageKind.PRIVATE,
}

CLIENT_TYPES = tuple(_CLIENT_KINDS)


def display_time(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.now()).strftime(TIME_FORMAT)


@dataclass
class Participant:
    """Active participant and the last time it was seen (epoch ms, never decreasing)"""
    name: str
    last_seen: int

    def is_stale(self, now: int, threshold_ms: int) -> bool:
        return now - self.last_seen > threshold_ms

    @classmethod
    def from_row(cls, row: ParticipantRow) -> "Participant":
        return cls(name=row.name, last_seen=row.last_status)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "lastStatus": self.last_seen}


@dataclass
class MessageDraft:
    """Validated message content before the store assigns id and time"""
    to: str
    text: str
    kind: MessageKind


@dataclass
class ChatMessage:
    """Stored chat event"""
    sender: str
    to: str
    text: str
    kind: MessageKind
    time: str = field(default_factory=display_time)
    message_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    sequence: int = 0

    def to_row(self) -> MessageRow:
        return MessageRow(
            message_id=self.message_id,
            sender=self.sender,
            to=self.to,
            text=self.text,
            kind=self.kind.value,
            time=self.time,
        )

    @classmethod
    def from_row(cls, row: MessageRow) -> "ChatMessage":
        return cls(
            sender=row.sender,
            to=row.to,
            text=row.text,
            kind=MessageKind.from_stored(row.kind),
            time=row.time,
            message_id=row.message_id,
            sequence=row.seq or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.message_id,
            "from": self.sender,
            "to": self.to,
            "text": self.text,
            "type": self.kind.wire_name,
            "time": self.time,
        }
