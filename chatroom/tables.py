from typing import Optional
from sqlmodel import SQLModel, Field

from .constants import MESSAGES_COLLECTION, PARTICIPANTS_COLLECTION


class ParticipantRow(SQLModel, table=True):
    __tablename__ = PARTICIPANTS_COLLECTION

    # Autoincrement id keeps listing in insertion order
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    last_status: int


class MessageRow(SQLModel, table=True):
    __tablename__ = MESSAGES_COLLECTION

    # Creation order
    seq: Optional[int] = Field(default=None, primary_key=True)
    message_id: str = Field(index=True, unique=True)
    sender: str = Field(index=True)
    to: str
    text: str
    kind: str
    time: str
