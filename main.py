"""
FastAPI chat room server
Participants join, exchange broadcast and private messages, and are evicted after inactivity
"""

from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatroom import (
    ChatError,
    ChatHandlers,
    Settings,
    UpstreamStorageError,
    configure_logging,
    get_logger,
    load_settings,
    log_system_event,
    start_chat_room,
)

logger = get_logger()


def create_app(settings: Optional[Settings] = None, clock: Optional[Callable[[], int]] = None,
               run_sweeper: bool = True) -> FastAPI:
    """
    Build the application

    Args:
        settings: Configuration, loaded from the environment when omitted
        clock: Millisecond clock for participant timestamps
        run_sweeper: Schedule the background inactivity sweeper

    Returns:
        FastAPI application
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect the store before anything that depends on it is built"""
        logger.info("Chat room server starting up...")
        room = await start_chat_room(settings, clock=clock, run_sweeper=run_sweeper)
        app.state.room = room

        yield

        await room.shutdown()
        logger.info("Chat room server shutting down...")

    app = FastAPI(
        title="Chat Room Server",
        description="Presence tracking and messaging with inactivity eviction",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError):
        if isinstance(exc, UpstreamStorageError):
            logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.__cause__ or exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc!r}")
        log_system_event("unhandled_exception", f"path={request.url.path}", level="error")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    def get_handlers(request: Request) -> ChatHandlers:
        return request.app.state.room.handlers

    @app.post("/participants", status_code=201)
    async def create_participant(body: Any = Body(None), handlers: ChatHandlers = Depends(get_handlers)):
        """Join the room"""
        return await handlers.create_participant(body)

    @app.get("/participants")
    async def list_participants(handlers: ChatHandlers = Depends(get_handlers)):
        return await handlers.list_participants()

    @app.post("/messages", status_code=201)
    async def post_message(body: Any = Body(None), user: Optional[str] = Header(None),
                           handlers: ChatHandlers = Depends(get_handlers)):
        """Send a broadcast or private message as the User header identity"""
        return await handlers.post_message(user, body)

    @app.get("/messages")
    async def list_messages(limit: Optional[str] = Query(None), user: Optional[str] = Header(None),
                            handlers: ChatHandlers = Depends(get_handlers)):
        """Messages visible to the User header identity, oldest first"""
        return await handlers.list_messages(user, limit)

    @app.post("/status")
    async def heartbeat(user: Optional[str] = Header(None), handlers: ChatHandlers = Depends(get_handlers)):
        """Refresh the inactivity timer for the User header identity"""
        return await handlers.heartbeat(user)

    @app.put("/messages/{message_id}")
    async def update_message(message_id: str, body: Any = Body(None), user: Optional[str] = Header(None),
                             handlers: ChatHandlers = Depends(get_handlers)):
        return await handlers.update_message(message_id, user, body)

    @app.delete("/messages/{message_id}")
    async def delete_message(message_id: str, user: Optional[str] = Header(None),
                             handlers: ChatHandlers = Depends(get_handlers)):
        await handlers.delete_message(message_id, user)
        return {"deleted": message_id}

    @app.get("/health")
    async def health_check(request: Request, handlers: ChatHandlers = Depends(get_handlers)):
        """Health check endpoint"""
        try:
            counts = await handlers.health()
        except ChatError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(status_code=503, content={"status": "unavailable"})

        return {
            "status": "healthy",
            **counts,
            "sweeper_running": request.app.state.room.sweeper.running,
        }

    return app


app = create_app()

if __name__ == "__main__":
    settings = app.state.settings
    logger.info("Starting chat room server...")

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
