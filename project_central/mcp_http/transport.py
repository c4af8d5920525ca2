"""Session transport manager: the live set of SSE push channels."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from anyio.abc import TaskGroup
from mcp.server.lowlevel import Server

from ..core import (
    KEEPALIVE_INTERVAL_SECONDS,
    MESSAGE_PATH,
    SESSION_GRACE_SECONDS,
    SINK_BUFFER_SIZE,
    SessionNotFoundError,
    TransportUnavailableError,
)
from .session import ChannelSession, format_comment, format_event

logger = logging.getLogger(__name__)


class SessionTransportManager:
    """
    Owns every live session and the tasks that serve them.

    All state is touched from the event loop only, so registering a session
    is a single dict insert and is visible to the next request immediately.
    A closed session stays routable for the grace period, then is removed and
    its protocol runner ended.
    """

    def __init__(
        self,
        server: Server,
        keepalive_interval: float = KEEPALIVE_INTERVAL_SECONDS,
        grace_period: float = SESSION_GRACE_SECONDS,
        message_path: str = MESSAGE_PATH,
        sink_buffer_size: int = SINK_BUFFER_SIZE,
    ):
        self.server = server
        self.keepalive_interval = keepalive_interval
        self.grace_period = grace_period
        self.message_path = message_path
        self.sink_buffer_size = sink_buffer_size

        self._init_options = server.create_initialization_options()
        self._sessions: dict[str, ChannelSession] = {}
        self._expiry_scopes: dict[str, anyio.CancelScope] = {}
        self._task_group: TaskGroup | None = None

    @property
    def running(self) -> bool:
        return self._task_group is not None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Run the manager. Sessions can only be opened inside this context."""
        if self._task_group is not None:
            raise RuntimeError("Session transport is already running")

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("Session transport started")
            try:
                yield
            finally:
                self._task_group = None
                for session in self._sessions.values():
                    session.shutdown()
                logger.info(f"Session transport stopped, {len(self._sessions)} session(s) dropped")
                self._sessions.clear()
                self._expiry_scopes.clear()
                tg.cancel_scope.cancel()

    # --- Session lifecycle ---

    def open_channel(self, root_path: str = "") -> ChannelSession:
        """Register a new session and start serving it."""
        tg = self._task_group
        if tg is None:
            raise TransportUnavailableError("Session transport is not running")

        session_id = uuid.uuid4().hex
        while session_id in self._sessions:
            session_id = uuid.uuid4().hex

        session = ChannelSession(session_id, buffer_size=self.sink_buffer_size)
        session.write_nowait(format_comment("keep-alive"))
        session.write_nowait(format_event("endpoint", f"{root_path}{self.message_path}?sessionId={session_id}"))

        self._sessions[session_id] = session
        tg.start_soon(self._run_session, session)
        logger.info(f"SSE session started: {session_id} (active: {len(self._sessions)})")
        return session

    async def _run_session(self, session: ChannelSession):
        async with anyio.create_task_group() as tg:
            tg.start_soon(session.run_keepalive, self.keepalive_interval, self._on_sink_failure)
            tg.start_soon(session.forward_responses, self._on_sink_failure)
            try:
                await self.server.run(session.inbound_reader, session.outbound_writer, self._init_options)
            except Exception as e:
                logger.error(f"Protocol runner failed for session {session.session_id}: {e}", exc_info=True)
            finally:
                tg.cancel_scope.cancel()

        # Runner ended on its own: reclaim the session the normal way
        self.close_channel(session.session_id)
        logger.debug(f"Protocol runner finished for session {session.session_id}")

    def close_channel(self, session_id: str):
        """
        Mark a session closed. Idempotent.

        The heartbeat stops now; the record is removed after the grace period.
        """
        session = self._sessions.get(session_id)
        if session is None or session_id in self._expiry_scopes:
            return

        session.cancel_keepalive()
        session.detach()
        logger.info(f"SSE connection closed: {session_id}")
        self._schedule_expiry(session_id)

    def _on_sink_failure(self, session_id: str):
        self.close_channel(session_id)

    def _schedule_expiry(self, session_id: str):
        previous = self._expiry_scopes.pop(session_id, None)
        if previous is not None:
            previous.cancel()

        tg = self._task_group
        if tg is None:
            return

        scope = anyio.CancelScope()
        self._expiry_scopes[session_id] = scope
        tg.start_soon(self._expire_after_grace, session_id, scope)

    async def _expire_after_grace(self, session_id: str, scope: anyio.CancelScope):
        with scope:
            await anyio.sleep(self.grace_period)
            if self._expiry_scopes.get(session_id) is not scope:
                return
            del self._expiry_scopes[session_id]

            session = self._sessions.pop(session_id, None)
            if session is not None:
                session.shutdown()
                logger.info(f"Session removed after grace period: {session_id} (active: {len(self._sessions)})")

    # --- Requests ---

    async def submit_request(self, session_id: str, body: bytes | str):
        """
        Route one client request to its session.

        Returns once the protocol layer has taken the message, not when the
        operation finishes. The response goes out on the session's channel.
        """
        session = self._sessions.get(session_id)
        if session is None:
            active = self.active_session_ids()
            logger.error(f"Session not found for ID: {session_id}. Current active sessions: {active}")
            raise SessionNotFoundError(session_id, active)

        if session.closing:
            logger.info(f"Request for closing session {session_id}, restarting grace period")
            self._schedule_expiry(session_id)

        await session.deliver(body)

    # --- Introspection ---

    def get(self, session_id: str) -> ChannelSession | None:
        return self._sessions.get(session_id)

    def active_session_ids(self) -> list[str]:
        return list(self._sessions)

    def count(self) -> int:
        return len(self._sessions)
