"""One push channel: an SSE frame sink paired with an MCP protocol stream."""

import logging
import time
import uuid
from collections.abc import AsyncIterator, Callable

import anyio
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError

from ..core import (
    SINK_BUFFER_SIZE,
    DeliveryError,
    MalformedMessageError,
    SinkWriteError,
)

logger = logging.getLogger(__name__)

FailureCallback = Callable[[str], None]


def format_comment(text: str) -> str:
    return f": {text}\n\n"


def format_event(event: str, data: str) -> str:
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


class ChannelSession:
    """
    State for one SSE connection.

    The sink has a single consumer, the HTTP response body. Writers take the
    write lock, so frames go out whole and in send order. The protocol layer
    reads requests from the inbound stream and writes responses to the
    outbound stream, which forward_responses turns into `message` events.
    """

    def __init__(self, session_id: str | None = None, buffer_size: int = SINK_BUFFER_SIZE):
        self.session_id = session_id or uuid.uuid4().hex
        self.created_at = time.time()
        self.closed_at: float | None = None

        self._sink_writer, self._sink_reader = anyio.create_memory_object_stream[str](buffer_size)
        self._write_lock = anyio.Lock()
        self._keepalive_scope = anyio.CancelScope()

        self.inbound_writer, self.inbound_reader = anyio.create_memory_object_stream[SessionMessage | Exception](0)
        self.outbound_writer, self.outbound_reader = anyio.create_memory_object_stream[SessionMessage](0)

    @property
    def closing(self) -> bool:
        """True once the client side has gone away."""
        return self.closed_at is not None

    # --- Sink ---

    def write_nowait(self, frame: str):
        """Queue a frame without waiting. Used for the opening frames."""
        try:
            self._sink_writer.send_nowait(frame)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.WouldBlock) as e:
            raise SinkWriteError(self.session_id) from e

    async def write(self, frame: str):
        async with self._write_lock:
            try:
                await self._sink_writer.send(frame)
            except (anyio.ClosedResourceError, anyio.BrokenResourceError) as e:
                raise SinkWriteError(self.session_id) from e

    async def send_comment(self, text: str):
        await self.write(format_comment(text))

    async def send_event(self, event: str, data: str):
        await self.write(format_event(event, data))

    async def frames(self) -> AsyncIterator[str]:
        """Frames in write order, until the sink is closed."""
        try:
            async for frame in self._sink_reader:
                yield frame
        except anyio.ClosedResourceError:
            return

    # --- Keep-alive ---

    async def run_keepalive(self, interval: float, on_failure: FailureCallback):
        with self._keepalive_scope:
            while True:
                await anyio.sleep(interval)
                try:
                    await self.send_comment("heartbeat")
                except SinkWriteError:
                    logger.warning(f"Heartbeat failed for session {self.session_id}")
                    on_failure(self.session_id)
                    return

    def cancel_keepalive(self):
        self._keepalive_scope.cancel()

    # --- Protocol streams ---

    async def deliver(self, body: bytes | str):
        """Parse a JSON-RPC message and hand it to the protocol layer."""
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as e:
            raise MalformedMessageError(self.session_id, str(e)) from e

        try:
            await self.inbound_writer.send(SessionMessage(message))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as e:
            raise DeliveryError(self.session_id) from e

    async def forward_responses(self, on_failure: FailureCallback):
        async with self.outbound_reader:
            async for session_message in self.outbound_reader:
                data = session_message.message.model_dump_json(by_alias=True, exclude_none=True)
                try:
                    await self.send_event("message", data)
                except SinkWriteError:
                    # At most once: the response is gone with the connection
                    logger.warning(f"Dropping response for session {self.session_id}: push channel closed")
                    on_failure(self.session_id)

    # --- Teardown ---

    def detach(self):
        """
        Close the write side of the sink. Later writes fail fast; frames already
        queued are still drained by frames(), which then ends.
        """
        if self.closed_at is None:
            self.closed_at = time.time()
        self._sink_writer.close()

    def shutdown(self):
        """Close every stream. The protocol runner sees end of input and exits."""
        self.cancel_keepalive()
        self.detach()
        self._sink_reader.close()
        self.inbound_writer.close()
