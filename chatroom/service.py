"""
Startup and shutdown sequence for the chat room components
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .config import Settings
from .handlers import ChatHandlers
from .logger import log_system_event
from .message_store import MessageStore
from .registry import ParticipantRegistry
from .storage import Database, connect
from .sweeper import InactivitySweeper


@dataclass
class ChatRoom:
    database: Database
    messages: MessageStore
    registry: ParticipantRegistry
    handlers: ChatHandlers
    sweeper: InactivitySweeper

    async def shutdown(self):
        await self.sweeper.stop()
        await self.database.close()
        log_system_event("shutdown_complete", f"database={self.database.name}")


def build_chat_room(database: Database, settings: Settings,
                    clock: Optional[Callable[[], int]] = None) -> ChatRoom:
    """Wire components around an already connected database"""
    messages = MessageStore(database)
    registry = ParticipantRegistry(database, messages, clock)
    sweeper = InactivitySweeper(
        registry,
        messages,
        threshold_seconds=settings.inactivity_threshold_seconds,
        interval_seconds=settings.sweep_interval_seconds,
    )
    return ChatRoom(
        database=database,
        messages=messages,
        registry=registry,
        handlers=ChatHandlers(registry, messages),
        sweeper=sweeper,
    )


async def start_chat_room(settings: Settings, clock: Optional[Callable[[], int]] = None,
                          run_sweeper: bool = True) -> ChatRoom:
    """
    Connect the database, then build and start everything that uses it

    Args:
        settings: Resolved configuration
        clock: Millisecond clock for participant timestamps
        run_sweeper: Schedule the recurring sweeper task

    Returns:
        Running ChatRoom
    """
    database = await connect(settings.database_url)
    room = build_chat_room(database, settings, clock)
    if run_sweeper:
        room.sweeper.start()
    log_system_event("startup_complete", f"database={database.name} sweeper={run_sweeper}")
    return room
