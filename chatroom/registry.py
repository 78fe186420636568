"""
Registry of active participants with inactivity eviction
"""

import asyncio
import time
from typing import Callable, List, Optional, Set

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from .constants import ERROR_MESSAGES, STATUS_ENTERED_TEXT
from .errors import ConflictError, NotFoundError
from .logger import get_logger, log_participant_event
from .message_store import MessageStore
from .models import Participant
from .storage import Database, storage_operation
from .tables import ParticipantRow

logger = get_logger()


class EpochClock:
    """Milliseconds since the epoch that never move backwards

    lastStatus keeps the epoch-ms shape clients see; a wall clock stepped
    back holds at the last reading instead of making a participant look
    younger or older than it is.
    """

    def __init__(self, source: Callable[[], float] = time.time):
        self._source = source
        self._last = 0

    def __call__(self) -> int:
        now = int(self._source() * 1000)
        if now < self._last:
            return self._last
        self._last = now
        return now


class ParticipantRegistry:
    """Active participant tracking shared by request handlers and the sweeper"""

    def __init__(self, database: Database, messages: MessageStore,
                 clock: Optional[Callable[[], int]] = None):
        self._db = database
        self._messages = messages
        self._clock = clock or EpochClock()
        # One lock for the table keeps per-name operations in invocation order
        self._lock = asyncio.Lock()

    async def join(self, name: str) -> Participant:
        """
        Register name as an active participant and announce it

        The participant row and its "entered" notice are written in one
        transaction: if the notice cannot be stored nothing is committed
        and the storage error propagates.

        Args:
            name: Sanitized, validated participant name

        Returns:
            The new Participant

        Raises:
            ConflictError: name is already active
            UpstreamStorageError: the database failed
        """
        async with self._lock:
            with storage_operation("participant_join"):
                async with self._db.session() as session:
                    existing = (await session.execute(
                        select(ParticipantRow).where(ParticipantRow.name == name)
                    )).scalars().first()
                    if existing is not None:
                        log_participant_event(name, "join_rejected", "duplicate name")
                        raise ConflictError(ERROR_MESSAGES["duplicate_name"])

                    participant = Participant(name=name, last_seen=self._clock())
                    session.add(ParticipantRow(name=name, last_status=participant.last_seen))
                    try:
                        await session.flush()
                    except IntegrityError:
                        raise ConflictError(ERROR_MESSAGES["duplicate_name"])

                    await self._messages.append_status(name, STATUS_ENTERED_TEXT, session=session)
                    await session.commit()

        log_participant_event(name, "join", f"last_seen={participant.last_seen}")
        return participant

    async def heartbeat(self, name: str) -> Participant:
        """
        Refresh last_seen for an active participant

        Raises:
            NotFoundError: name is not active
        """
        async with self._lock:
            last_seen = self._clock()
            with storage_operation("participant_heartbeat"):
                async with self._db.session() as session:
                    result = await session.execute(
                        update(ParticipantRow)
                        .where(ParticipantRow.name == name)
                        .values(last_status=last_seen)
                    )
                    affected = result.rowcount
                    await session.commit()
            if not affected:
                raise NotFoundError(ERROR_MESSAGES["unknown_participant"])

        log_participant_event(name, "heartbeat", f"last_seen={last_seen}")
        return Participant(name=name, last_seen=last_seen)

    async def list(self) -> List[Participant]:
        """Snapshot of active participants in insertion order"""
        with storage_operation("participant_list"):
            async with self._db.session() as session:
                rows = (await session.execute(
                    select(ParticipantRow).order_by(ParticipantRow.id)
                )).scalars().all()
        return [Participant.from_row(row) for row in rows]

    async def get(self, name: str) -> Optional[Participant]:
        with storage_operation("participant_get"):
            async with self._db.session() as session:
                row = (await session.execute(
                    select(ParticipantRow).where(ParticipantRow.name == name)
                )).scalars().first()
        return Participant.from_row(row) if row else None

    async def is_active(self, name: str) -> bool:
        return await self.get(name) is not None

    async def evict_stale(self, threshold_ms: int, now: Optional[int] = None) -> Set[str]:
        """
        Remove every participant not seen for longer than threshold_ms

        Runs under the registry lock, so a heartbeat that completed before
        the snapshot is always taken into account.

        Args:
            threshold_ms: Inactivity threshold in milliseconds
            now: Reference time, defaults to the registry clock

        Returns:
            Names that were evicted
        """
        async with self._lock:
            now = self._clock() if now is None else now
            with storage_operation("participant_evict"):
                async with self._db.session() as session:
                    rows = (await session.execute(select(ParticipantRow))).scalars().all()
                    stale = {
                        participant.name
                        for participant in map(Participant.from_row, rows)
                        if participant.is_stale(now, threshold_ms)
                    }
                    if not stale:
                        return set()

                    await session.execute(delete(ParticipantRow).where(ParticipantRow.name.in_(stale)))
                    await session.commit()

        for name in sorted(stale):
            log_participant_event(name, "evict", f"threshold_ms={threshold_ms}")
        return stale

    async def count(self) -> int:
        with storage_operation("participant_count"):
            async with self._db.session() as session:
                return (await session.execute(select(func.count()).select_from(ParticipantRow))).scalar_one()
