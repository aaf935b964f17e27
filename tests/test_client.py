import asyncio
import socket

import pytest

from wsdemo.client import (
    TEST_MESSAGE,
    WEBSOCKET_URI_DEFAULT,
    Client,
    handle_json_message,
    parse_args,
)
from wsdemo.server import REPLY_TEXT, TEST_BINARY_DATA, Server


async def _wait_for(predicate, timeout=5.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


def _unused_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_parse_args_default_uri():
    args = parse_args([])
    assert args.websocket_uri == WEBSOCKET_URI_DEFAULT
    assert args.websocket_uri == "ws://127.0.0.1:8080/ws"


@pytest.mark.parametrize("flag", ["-u", "--websocket-uri"])
def test_parse_args_uri_option(flag):
    args = parse_args([flag, "ws://localhost:9000/ws"])
    assert args.websocket_uri == "ws://localhost:9000/ws"


def test_parse_args_failure_exits_with_status_one(capsys):
    with pytest.raises(SystemExit) as excinfo:
        parse_args(["--no-such-option"])
    assert excinfo.value.code == 1
    assert "Option context parsing failed" in capsys.readouterr().out


def test_handle_json_message_offer(capsys):
    assert handle_json_message('{"msg": "offer", "sdp": "v=0"}') == "offer"
    assert "Websocket message received: offer" in capsys.readouterr().out


def test_handle_json_message_candidate_bytes():
    data = b'{"msg": "candidate", "candidate": {"candidate": "c", "sdpMLineIndex": 0}}'
    assert handle_json_message(data) == "candidate"


@pytest.mark.parametrize("data", ['{"sdp": "v=0"}', "not json", "[1, 2]", b"\xff\xfe"])
def test_handle_json_message_rejects_invalid(data):
    assert handle_json_message(data) is None


@pytest.mark.asyncio
async def test_send_test_message_without_connection(capsys):
    client = Client("ws://127.0.0.1:1/ws")
    assert await client.send_test_message() is False
    assert client.connected is False
    assert "isn't open" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_run_reports_connection_failure(capsys):
    client = Client(f"ws://127.0.0.1:{_unused_port()}/ws")
    assert await client.run() is False
    assert "Error creating websocket" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_client_exchanges_messages_with_server(capsys):
    async with Server("127.0.0.1", 0) as server:
        client = Client(f"ws://127.0.0.1:{server.port}/ws", interval=0.05)
        task = asyncio.create_task(client.run())
        await _wait_for(lambda: len(client.received) >= 2)
        assert client.connected is True
        client.stop()
        assert await asyncio.wait_for(task, 5) is True
    assert client.received[:2] == [REPLY_TEXT, TEST_BINARY_DATA]
    out = capsys.readouterr().out
    assert "Websocket connected" in out
    assert f"Received text message from client 1: {TEST_MESSAGE}" in out


@pytest.mark.asyncio
async def test_client_keeps_running_after_remote_close(capsys):
    server = Server("127.0.0.1", 0)
    await server.start()
    client = Client(f"ws://127.0.0.1:{server.port}/ws", interval=60)
    task = asyncio.create_task(client.run())
    try:
        await _wait_for(lambda: len(server.client_ids) == 1)
    finally:
        await server.stop()
    await _wait_for(lambda: not client.connected)
    assert task.done() is False
    assert "Connection closed remotely" in capsys.readouterr().out
    assert await client.send_test_message() is False
    client.stop()
    assert await asyncio.wait_for(task, 5) is True


@pytest.mark.asyncio
async def test_stop_before_run_returns_after_connecting():
    async with Server("127.0.0.1", 0) as server:
        client = Client(f"ws://127.0.0.1:{server.port}/ws")
        client.stop()
        assert await asyncio.wait_for(client.run(), 5) is True
        assert client.connected is False
        await _wait_for(lambda: server.client_ids == ())
        assert server.client_ids == ()