"""Tests for the session transport manager."""

import json
from contextlib import aclosing

import anyio
import pytest
from mcp import types

from project_central.core import DeliveryError, SessionNotFoundError, TransportUnavailableError
from project_central.mcp_http import SessionTransportManager
from project_central.server import create_mcp_server

pytestmark = pytest.mark.anyio

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": types.LATEST_PROTOCOL_VERSION,
        "capabilities": {},
        "clientInfo": {"name": "test-client", "version": "0.1"},
    },
}
INITIALIZED = {"jsonrpc": "2.0", "method": "notifications/initialized"}


def _call_tool(request_id, name, arguments=None):
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    }


def _parse_event(frame: str) -> tuple[str, str]:
    event, data = frame.rstrip("\n").split("\n", 1)
    return event.removeprefix("event: "), data.removeprefix("data: ")


@pytest.fixture
def make_manager(dispatcher):
    def make(**kwargs):
        kwargs.setdefault("keepalive_interval", 30.0)
        kwargs.setdefault("grace_period", 10.0)
        return SessionTransportManager(create_mcp_server(dispatcher), **kwargs)
    return make


class TestOpen:

    async def test_priming_frames(self, make_manager):
        manager = make_manager()
        async with manager.run():
            session = manager.open_channel(root_path="/api")
            async with aclosing(session.frames()) as frames:
                with anyio.fail_after(2):
                    assert await anext(frames) == ": keep-alive\n\n"
                    event, data = _parse_event(await anext(frames))

        assert event == "endpoint"
        assert data == f"/api/messages?sessionId={session.session_id}"

    async def test_distinct_ids(self, make_manager):
        manager = make_manager()
        async with manager.run():
            sessions = [manager.open_channel() for _ in range(50)]
            assert manager.count() == 50
            assert len({s.session_id for s in sessions}) == 50
            assert all(manager.get(s.session_id) is s for s in sessions)

    async def test_not_running(self, make_manager):
        manager = make_manager()
        with pytest.raises(TransportUnavailableError):
            manager.open_channel()
        assert manager.count() == 0

    async def test_run_twice(self, make_manager):
        manager = make_manager()
        async with manager.run():
            with pytest.raises(RuntimeError):
                async with manager.run():
                    pass

    async def test_stop_drops_sessions(self, make_manager):
        manager = make_manager()
        async with manager.run():
            session = manager.open_channel()

        assert manager.count() == 0
        assert not manager.running
        with pytest.raises(DeliveryError):
            await session.deliver(json.dumps(INITIALIZED))


class TestRouting:

    async def test_unknown_session(self, make_manager):
        manager = make_manager()
        async with manager.run():
            live = [manager.open_channel().session_id for _ in range(2)]

            with pytest.raises(SessionNotFoundError) as exc_info:
                await manager.submit_request("bogus-id", json.dumps(INITIALIZE))

            assert sorted(exc_info.value.active_sessions) == sorted(live)
            assert "No active SSE transport for session: bogus-id" in str(exc_info.value)
            assert sorted(manager.active_session_ids()) == sorted(live)

    async def test_response_reaches_only_its_session(self, make_manager):
        manager = make_manager()
        async with manager.run():
            first = manager.open_channel()
            second = manager.open_channel()

            async with aclosing(first.frames()) as frames:
                with anyio.fail_after(5):
                    await anext(frames)
                    await anext(frames)

                    await manager.submit_request(first.session_id, json.dumps(INITIALIZE))
                    event, data = _parse_event(await anext(frames))
                    assert event == "message"
                    initialize_result = json.loads(data)
                    assert initialize_result["id"] == 1
                    assert initialize_result["result"]["serverInfo"]["name"] == "project-management-server"

                    await manager.submit_request(first.session_id, json.dumps(INITIALIZED))
                    await manager.submit_request(first.session_id, json.dumps(_call_tool(2, "list_all_projects")))
                    event, data = _parse_event(await anext(frames))

            result = json.loads(data)
            assert result["id"] == 2
            assert result["result"]["isError"] is False
            assert "You don't have any projects yet" in result["result"]["content"][0]["text"]

            # The second session only ever saw its own opening frames
            async with aclosing(second.frames()) as frames:
                assert await anext(frames) == ": keep-alive\n\n"
                event, data = _parse_event(await anext(frames))
                assert event == "endpoint"
                assert second.session_id in data

    async def test_tool_error_is_a_result(self, make_manager):
        manager = make_manager()
        async with manager.run():
            session = manager.open_channel()
            async with aclosing(session.frames()) as frames:
                with anyio.fail_after(5):
                    await anext(frames)
                    await anext(frames)
                    await manager.submit_request(session.session_id, json.dumps(INITIALIZE))
                    await anext(frames)
                    await manager.submit_request(session.session_id, json.dumps(INITIALIZED))
                    await manager.submit_request(
                        session.session_id,
                        json.dumps(_call_tool(3, "add_issue", {"project_name": "Phoenix", "title": "X"})),
                    )
                    _, data = _parse_event(await anext(frames))

        result = json.loads(data)["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"] == 'Error: Project matching "Phoenix" not found.'


class TestClose:

    async def test_grace_period(self, make_manager):
        manager = make_manager(grace_period=0.2)
        async with manager.run():
            session = manager.open_channel()
            manager.close_channel(session.session_id)

            assert manager.count() == 1
            assert session.closing
            await manager.submit_request(session.session_id, json.dumps(INITIALIZED))

            await anyio.sleep(0.5)
            assert manager.count() == 0
            with pytest.raises(SessionNotFoundError):
                await manager.submit_request(session.session_id, json.dumps(INITIALIZED))

    async def test_request_restarts_grace_period(self, make_manager):
        manager = make_manager(grace_period=0.5)
        async with manager.run():
            session = manager.open_channel()
            manager.close_channel(session.session_id)

            await anyio.sleep(0.3)
            await manager.submit_request(session.session_id, json.dumps(INITIALIZED))

            await anyio.sleep(0.35)
            assert manager.get(session.session_id) is session

            await anyio.sleep(0.4)
            assert manager.get(session.session_id) is None

    async def test_close_twice(self, make_manager):
        manager = make_manager(grace_period=0.1)
        async with manager.run():
            session = manager.open_channel()
            manager.close_channel(session.session_id)
            manager.close_channel(session.session_id)
            manager.close_channel("never-existed")

            assert manager.count() == 1
            await anyio.sleep(0.3)
            assert manager.count() == 0

    async def test_keepalive_stops_on_close(self, make_manager):
        manager = make_manager(keepalive_interval=0.02)
        async with manager.run():
            session = manager.open_channel()
            async with aclosing(session.frames()) as frames:
                with anyio.fail_after(2):
                    await anext(frames)
                    await anext(frames)
                    assert await anext(frames) == ": heartbeat\n\n"

            manager.close_channel(session.session_id)
            assert session._keepalive_scope.cancel_called

            # Only heartbeats queued before the close remain, then the stream ends
            await anyio.sleep(0.1)
            with anyio.fail_after(1):
                received = [frame async for frame in session.frames()]
            assert set(received) <= {": heartbeat\n\n"}

    async def test_sink_failure_closes_channel(self, make_manager):
        manager = make_manager(keepalive_interval=0.02, grace_period=0.05)
        async with manager.run():
            session = manager.open_channel()
            # Connection gone without a close call: the next heartbeat fails
            session.detach()

            await anyio.sleep(0.3)
            assert manager.get(session.session_id) is None
