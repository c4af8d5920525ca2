"""Tests for a single channel session."""

import json
from contextlib import aclosing

import anyio
import pytest
from mcp import types
from mcp.shared.message import SessionMessage

from project_central.core import DeliveryError, MalformedMessageError, SinkWriteError
from project_central.mcp_http import ChannelSession, format_comment, format_event

pytestmark = pytest.mark.anyio


def _response(request_id: int) -> SessionMessage:
    return SessionMessage(types.JSONRPCMessage(types.JSONRPCResponse(jsonrpc="2.0", id=request_id, result={})))


class TestFrames:

    def test_comment(self):
        assert format_comment("heartbeat") == ": heartbeat\n\n"

    def test_event(self):
        assert format_event("endpoint", "/messages?sessionId=abc") == "event: endpoint\ndata: /messages?sessionId=abc\n\n"

    def test_multiline_event(self):
        assert format_event("message", "a\nb") == "event: message\ndata: a\ndata: b\n\n"


class TestSink:

    async def test_frames_in_write_order(self):
        session = ChannelSession()
        session.write_nowait(format_comment("keep-alive"))
        await session.send_event("endpoint", "/messages")
        await session.send_comment("heartbeat")

        async with aclosing(session.frames()) as frames:
            assert await anext(frames) == ": keep-alive\n\n"
            assert await anext(frames) == "event: endpoint\ndata: /messages\n\n"
            assert await anext(frames) == ": heartbeat\n\n"

    async def test_write_after_detach(self):
        session = ChannelSession()
        session.detach()

        assert session.closing
        with pytest.raises(SinkWriteError):
            await session.send_comment("heartbeat")
        with pytest.raises(SinkWriteError):
            session.write_nowait(format_comment("keep-alive"))

    async def test_detach_ends_frames(self):
        session = ChannelSession()
        received = []

        async def consume():
            async for frame in session.frames():
                received.append(frame)

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(consume)
                await session.send_comment("heartbeat")
                await anyio.sleep(0.01)
                session.detach()

        assert received == [": heartbeat\n\n"]

    async def test_detach_keeps_queued_frames(self):
        session = ChannelSession()
        await session.send_event("message", '{"id": 7}')
        session.detach()

        with anyio.fail_after(1):
            received = [frame async for frame in session.frames()]
        assert received == ['event: message\ndata: {"id": 7}\n\n']

    async def test_shutdown_discards_queued_frames(self):
        session = ChannelSession()
        await session.send_comment("heartbeat")
        session.shutdown()

        with anyio.fail_after(1):
            assert [frame async for frame in session.frames()] == []

    async def test_unique_ids(self):
        assert ChannelSession().session_id != ChannelSession().session_id


class TestKeepalive:

    async def test_heartbeats_until_cancelled(self):
        session = ChannelSession()
        failures = []

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(session.run_keepalive, 0.02, failures.append)
                async with aclosing(session.frames()) as frames:
                    assert await anext(frames) == ": heartbeat\n\n"
                    assert await anext(frames) == ": heartbeat\n\n"
                session.cancel_keepalive()

        assert failures == []

    async def test_cancel_before_start(self):
        session = ChannelSession()
        session.cancel_keepalive()
        session.cancel_keepalive()

        with anyio.fail_after(1):
            await session.run_keepalive(0.01, lambda session_id: None)

    async def test_failed_heartbeat_reported(self):
        session = ChannelSession()
        session.detach()
        failures = []

        with anyio.fail_after(2):
            await session.run_keepalive(0.01, failures.append)

        assert failures == [session.session_id]


class TestProtocolStreams:

    async def test_deliver(self):
        session = ChannelSession()
        body = json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"})

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(session.deliver, body)
                received = await session.inbound_reader.receive()

        assert isinstance(received, SessionMessage)
        assert received.message.root.method == "ping"

    @pytest.mark.parametrize("body", [b"not json", b'{"hello": "world"}', b""])
    async def test_deliver_malformed(self, body):
        session = ChannelSession()
        with pytest.raises(MalformedMessageError):
            await session.deliver(body)

    async def test_deliver_after_shutdown(self):
        session = ChannelSession()
        session.shutdown()
        with pytest.raises(DeliveryError):
            await session.deliver(json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}))

    async def test_forward_responses(self):
        session = ChannelSession()

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(session.forward_responses, lambda session_id: None)
                await session.outbound_writer.send(_response(7))
                session.outbound_writer.close()

        async with aclosing(session.frames()) as frames:
            frame = await anext(frames)

        event, data = frame.rstrip("\n").split("\n")
        assert event == "event: message"
        assert json.loads(data.removeprefix("data: ")) == {"jsonrpc": "2.0", "id": 7, "result": {}}

    async def test_forward_keeps_draining_after_failure(self):
        session = ChannelSession()
        session.detach()
        failures = []

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(session.forward_responses, failures.append)
                await session.outbound_writer.send(_response(1))
                await session.outbound_writer.send(_response(2))
                session.outbound_writer.close()

        assert failures == [session.session_id, session.session_id]
