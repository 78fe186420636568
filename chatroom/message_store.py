"""
Append-only chat log with owner-checked update and delete
"""

import asyncio
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .constants import BROADCAST_TARGET, ERROR_MESSAGES
from .errors import ForbiddenError, NotFoundError
from .logger import log_message_event, log_security_event
from .models import ChatMessage, MessageDraft, MessageKind, display_time
from .storage import Database, storage_operation
from .tables import MessageRow
from .visibility import visible_messages


class MessageStore:
    """Stores chat events and answers visibility-filtered queries"""

    def __init__(self, database: Database):
        self._db = database
        # Serializes check-then-write sequences on the same message id
        self._lock = asyncio.Lock()

    async def append(self, sender: str, draft: MessageDraft, time: Optional[str] = None,
                     session: Optional[AsyncSession] = None) -> ChatMessage:
        """
        Store a new message

        Content is assumed to be validated already; only storage
        failures can make this fail.

        Args:
            sender: Owner of the message
            draft: Validated destination, text and kind
            time: Display time to record, defaults to now
            session: Enclosing transaction to write in; commits its own otherwise

        Returns:
            The stored message with its assigned id
        """
        message = ChatMessage(
            sender=sender,
            to=draft.to,
            text=draft.text,
            kind=draft.kind,
            time=time or display_time(),
        )
        row = message.to_row()

        with storage_operation("message_append"):
            if session is not None:
                session.add(row)
                await session.flush()
            else:
                async with self._db.session() as own_session:
                    own_session.add(row)
                    await own_session.commit()

        message.sequence = row.seq
        log_message_event(message.message_id, sender, "append", f"type={message.kind.value}")
        return message

    async def append_status(self, name: str, text: str, time: Optional[str] = None,
                            session: Optional[AsyncSession] = None) -> ChatMessage:
        """Store a system join/leave notice on behalf of name"""
        draft = MessageDraft(to=BROADCAST_TARGET, text=text, kind=MessageKind.STATUS)
        return await self.append(name, draft, time, session=session)

    async def query(self, requester: Optional[str], limit: Optional[int] = None) -> List[ChatMessage]:
        """
        Messages visible to requester in creation order

        Args:
            requester: Identity asking
            limit: Keep only the most recent `limit` matches

        Returns:
            Visible messages, oldest first
        """
        with storage_operation("message_query"):
            async with self._db.session() as session:
                rows = (await session.execute(select(MessageRow).order_by(MessageRow.seq))).scalars().all()

        return visible_messages([ChatMessage.from_row(row) for row in rows], requester, limit)

    async def get(self, message_id: str) -> Optional[ChatMessage]:
        with storage_operation("message_get"):
            async with self._db.session() as session:
                row = (await session.execute(
                    select(MessageRow).where(MessageRow.message_id == message_id)
                )).scalars().first()
        return ChatMessage.from_row(row) if row else None

    async def _owned(self, message_id: str, requester: Optional[str], action: str) -> ChatMessage:
        # Existence is checked before ownership
        message = await self.get(message_id)
        if message is None:
            raise NotFoundError(ERROR_MESSAGES["unknown_message"])
        if message.sender != requester:
            log_security_event("ownership_violation", {
                "action": action,
                "message_id": message_id,
                "owner": message.sender,
                "requester": requester,
            })
            raise ForbiddenError()
        return message

    async def update_owned(self, message_id: str, requester: Optional[str], draft: MessageDraft) -> ChatMessage:
        """
        Replace destination, text and kind of a message owned by requester

        id, sender and original time are preserved.

        Raises:
            NotFoundError: no message with message_id
            ForbiddenError: requester is not the sender
        """
        async with self._lock:
            message = await self._owned(message_id, requester, "update")

            with storage_operation("message_update"):
                async with self._db.session() as session:
                    result = await session.execute(
                        update(MessageRow)
                        .where(MessageRow.message_id == message_id)
                        .values(to=draft.to, text=draft.text, kind=draft.kind.value)
                    )
                    affected = result.rowcount
                    await session.commit()
            if not affected:
                raise NotFoundError(ERROR_MESSAGES["unknown_message"])

        message.to, message.text, message.kind = draft.to, draft.text, draft.kind
        log_message_event(message_id, message.sender, "update", f"type={draft.kind.value}")
        return message

    async def delete_owned(self, message_id: str, requester: Optional[str]) -> None:
        """
        Permanently remove a message owned by requester

        Raises:
            NotFoundError: no message with message_id
            ForbiddenError: requester is not the sender
        """
        async with self._lock:
            message = await self._owned(message_id, requester, "delete")

            with storage_operation("message_delete"):
                async with self._db.session() as session:
                    result = await session.execute(
                        delete(MessageRow).where(MessageRow.message_id == message_id)
                    )
                    affected = result.rowcount
                    await session.commit()
            if not affected:
                raise NotFoundError(ERROR_MESSAGES["unknown_message"])

        log_message_event(message_id, message.sender, "delete")

    async def count(self) -> int:
        with storage_operation("message_count"):
            async with self._db.session() as session:
                return (await session.execute(select(func.count()).select_from(MessageRow))).scalar_one()
