"""WebSocket demo server: answers text messages with a reply and test binary data."""

from __future__ import annotations

import argparse
import asyncio
import enum
import itertools
import json
from collections import defaultdict
from typing import Any, Callable

from aiohttp import WSMsgType, web

from .logger import get_logger

DEFAULT_PORT = 8080
WEBSOCKET_PATH = "/ws"
REPLY_TEXT = "OK, prepare to receive the binary data."
# The test payload includes its terminating NUL byte.
TEST_BINARY_DATA = b"This is some test binary data\x00"

log = get_logger()


class ServerEvent(str, enum.Enum):
    """Events a :class:`Server` emits to connected callbacks."""

    WS_CLIENT_CONNECTED = "ws-client-connected"
    WS_CLIENT_DISCONNECTED = "ws-client-disconnected"
    DATA_CHUNK_DESCRIPTOR = "data-chunk-descriptor"


class Server:
    """A WebSocket server listening on ``/ws``; every other request gets 404."""

    def __init__(self, host: str | None = None, port: int = DEFAULT_PORT) -> None:
        self.host = host
        self.port = port
        self._connections: dict[int, web.WebSocketResponse] = {}
        self._ids = itertools.count(1)
        self._callbacks: dict[ServerEvent, list[Callable[..., Any]]] = defaultdict(list)
        self._runner: web.AppRunner | None = None

    @property
    def client_ids(self) -> tuple[int, ...]:
        """Identifiers of the currently connected clients, oldest first."""
        return tuple(self._connections)

    async def __aenter__(self) -> Server:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def start(self) -> None:
        """Bind the listening socket and begin serving."""
        if self._runner is not None:
            raise RuntimeError("server already started")
        app = web.Application()
        app.router.add_route("GET", WEBSOCKET_PATH, self._websocket_handler)
        app.router.add_route("*", "/{tail:.*}", self._http_handler)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except Exception:
            await runner.cleanup()
            raise
        self._runner = runner
        addresses = runner.addresses
        if addresses:
            self.port = addresses[0][1]
        log.info("Server initialized, listening on: %u", self.port)

    async def stop(self) -> None:
        """Close every client connection and stop listening."""
        if self._runner is None:
            return
        for ws in list(self._connections.values()):
            await ws.close()
        await self._runner.cleanup()
        self._runner = None
        log.debug("Server disconnected")

    def connect(self, event: ServerEvent | str, callback: Callable[..., Any]) -> None:
        """Register ``callback`` for ``event``.

        Connected and disconnected callbacks receive the client id; the
        data-chunk-descriptor callback receives the client id and the SDP text.
        """
        self._callbacks[ServerEvent(event)].append(callback)

    def _emit(self, event: ServerEvent, *args: Any) -> None:
        for callback in list(self._callbacks[event]):
            callback(*args)

    async def send_to_client(self, client_id: int, text: str) -> bool:
        """Send ``text`` to a client; return whether it was sent."""
        log.info("send_to_client")
        ws = self._connections.get(client_id)
        if ws is None:
            log.warning("Unknown websocket connection.")
            return False
        if ws.closed:
            log.warning("Trying to send message using websocket that isn't open.")
            return False
        await ws.send_str(text)
        return True

    async def send_json_to_client(self, client_id: int, message: Any) -> bool:
        """Send ``message`` as pretty-printed JSON text to a client."""
        return await self.send_to_client(client_id, json.dumps(message, indent=2))

    def handle_json_message(self, client_id: int, data: str | bytes) -> None:
        """Interpret a JSON message; an ``answer`` emits the data-chunk descriptor."""
        try:
            message = json.loads(data)
        except (ValueError, UnicodeDecodeError) as error:
            log.debug("Error parsing message: %s", error)
            return
        if not isinstance(message, dict) or "msg" not in message:
            return
        if message["msg"] == "answer":
            self._emit(ServerEvent.DATA_CHUNK_DESCRIPTOR, client_id, message.get("sdp"))

    async def _http_handler(self, request: web.Request) -> web.Response:
        log.error("Got an erroneous HTTP request from %s", request.remote)
        return web.Response(status=404)

    async def _websocket_handler(self, request: web.Request) -> web.StreamResponse:
        ws = web.WebSocketResponse()
        if not ws.can_prepare(request).ok:
            return await self._http_handler(request)
        await ws.prepare(request)
        log.debug("New connection from %s", request.remote)

        client_id = self._add_connection(ws)
        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    log.debug("Received text message from client %d: %s", client_id, msg.data)
                    await ws.send_str(REPLY_TEXT)
                    await ws.send_bytes(TEST_BINARY_DATA)
                elif msg.type == WSMsgType.BINARY:
                    log.debug("Received unknown binary message from client %d, ignoring", client_id)
        finally:
            log.debug("Connection closed: %d", client_id)
            self._remove_connection(client_id)
        return ws

    def _add_connection(self, ws: web.WebSocketResponse) -> int:
        client_id = next(self._ids)
        log.debug("Added websocket connection: %d", client_id)
        self._connections[client_id] = ws
        self._emit(ServerEvent.WS_CLIENT_CONNECTED, client_id)
        return client_id

    def _remove_connection(self, client_id: int) -> None:
        log.debug("Removed websocket connection: %d", client_id)
        self._connections.pop(client_id, None)
        self._emit(ServerEvent.WS_CLIENT_DISCONNECTED, client_id)


async def _serve(server: Server) -> None:
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        log.debug("Exited main loop, cleaning up")
        await server.stop()


def main(argv: list[str] | None = None) -> int:
    """Run the WebSocket server until interrupted."""
    parser = argparse.ArgumentParser(description="WebSocket demo server")
    parser.add_argument("--host", default=None, help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    server = Server(args.host, args.port)
    log.debug("Starting main loop")
    try:
        asyncio.run(_serve(server))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())