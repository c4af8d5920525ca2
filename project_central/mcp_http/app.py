"""
FastAPI application exposing the MCP tool server over SSE.

Routes:
    GET  /sse                    push channel, one session per connection
    POST /messages?sessionId=... client requests for a session
    GET  /health                 liveness and session count
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from .. import __version__
from ..config import ServerConfig
from ..core import (
    MESSAGE_PATH,
    SSE_PATH,
    DeliveryError,
    MalformedMessageError,
    SessionNotFoundError,
    TransportUnavailableError,
)
from ..server import create_mcp_server
from ..storage import ProjectRepository, create_repository
from ..tools import OperationDispatcher, build_default_registry
from .transport import SessionTransportManager

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class HealthResponse(BaseModel):
    status: str
    version: str
    transport: str
    active_sessions: int
    storage: str


class SseEndpoint:
    """Raw ASGI endpoint that holds one push channel open per request."""

    def __init__(self, manager: SessionTransportManager):
        self.manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        client = scope.get("client")
        logger.info(f"New SSE connection from {client[0] if client else 'unknown'}")

        try:
            session = self.manager.open_channel(root_path=scope.get("root_path", ""))
        except TransportUnavailableError as e:
            logger.error(f"Cannot open SSE channel: {e}")
            await PlainTextResponse(str(e), status_code=503)(scope, receive, send)
            return

        response = StreamingResponse(session.frames(), media_type="text/event-stream", headers=SSE_HEADERS)
        try:
            await response(scope, receive, send)
        finally:
            self.manager.close_channel(session.session_id)


def create_app(config: ServerConfig | None = None, repository: ProjectRepository | None = None) -> FastAPI:
    """Build the HTTP application and its transport manager."""
    config = config or ServerConfig()
    if repository is None:
        repository = create_repository(config)

    dispatcher = OperationDispatcher(build_default_registry(), repository)
    manager = SessionTransportManager(
        create_mcp_server(dispatcher),
        keepalive_interval=config.keepalive_interval,
        grace_period=config.grace_period,
        message_path=MESSAGE_PATH,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Project Central MCP server (SSE) with {repository.name} storage")
        try:
            async with manager.run():
                logger.info(f"SSE endpoint: {SSE_PATH}, messages endpoint: {MESSAGE_PATH}")
                yield
        finally:
            await repository.close()
            logger.info("Project Central MCP server stopped")

    app = FastAPI(
        title="Project Central MCP Server",
        description="Project and issue tracking tools over MCP",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.repository = repository
    app.state.dispatcher = dispatcher
    app.state.manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_route(SSE_PATH, SseEndpoint(manager), methods=["GET"])

    @app.post(MESSAGE_PATH)
    async def post_message(request: Request) -> Response:
        session_id = request.query_params.get("sessionId") or request.query_params.get("session_id")
        if not session_id:
            logger.error("Message received without sessionId")
            return PlainTextResponse("Missing sessionId query parameter", status_code=400)

        body = await request.body()
        try:
            await manager.submit_request(session_id, body)
        except SessionNotFoundError as e:
            active = ", ".join(e.active_sessions) or "none"
            return PlainTextResponse(f"{e} Active sessions: {active}", status_code=400)
        except MalformedMessageError as e:
            logger.warning(f"Could not parse message for session {session_id}: {e}")
            return PlainTextResponse("Could not parse message", status_code=400)
        except DeliveryError as e:
            logger.error(f"Error handling message for session {session_id}: {e}")
            return PlainTextResponse(str(e), status_code=500)

        logger.debug(f"Accepted message for session {session_id}")
        return PlainTextResponse("Accepted", status_code=202)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok",
            version=__version__,
            transport="sse",
            active_sessions=manager.count(),
            storage=repository.name,
        )

    return app
