"""WebSocket demo client: connects to the server and asks for binary data periodically."""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
from typing import Any, NoReturn

import aiohttp
from aiohttp import WSMsgType

from .logger import get_logger

WEBSOCKET_URI_DEFAULT = "ws://127.0.0.1:8080/ws"
SEND_INTERVAL = 3.0
TEST_MESSAGE = "Hi! from client. Please send some binary data."

log = get_logger()


class _OptionParser(argparse.ArgumentParser):
    """Argument parser that reports failures and exits with status 1."""

    def error(self, message: str) -> NoReturn:
        print(f"Option context parsing failed: {message}")
        raise SystemExit(1)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line; ``websocket_uri`` falls back to the default URI."""
    parser = _OptionParser(description="WebSocket demo client")
    parser.add_argument(
        "-u",
        "--websocket-uri",
        metavar="URI",
        default=WEBSOCKET_URI_DEFAULT,
        help="Websocket URI of webrtc signaling connection",
    )
    return parser.parse_args(argv)


def handle_json_message(data: str | bytes) -> str | None:
    """Interpret a JSON signalling message and return its ``msg`` type.

    Returns ``None`` when the data is not JSON or carries no ``msg`` member.
    """
    try:
        message: Any = json.loads(data)
    except (ValueError, UnicodeDecodeError) as error:
        log.debug("Error parsing message: %s", error)
        return None
    if not isinstance(message, dict) or "msg" not in message:
        return None

    msg_type = message["msg"]
    print(f"Websocket message received: {msg_type}")
    if msg_type == "offer":
        log.debug("Offer SDP: %s", message.get("sdp"))
    elif msg_type == "candidate":
        candidate = message.get("candidate") or {}
        log.debug(
            "Candidate %s at line %s",
            candidate.get("candidate"),
            candidate.get("sdpMLineIndex"),
        )
    return msg_type


class Client:
    """Connects to a WebSocket server and sends a test message every ``interval`` seconds."""

    def __init__(self, uri: str = WEBSOCKET_URI_DEFAULT, interval: float = SEND_INTERVAL) -> None:
        self.uri = uri
        self.interval = interval
        self.received: list[str | bytes] = []
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._stopped = asyncio.Event()

    @property
    def connected(self) -> bool:
        """Whether the WebSocket connection is currently open."""
        return self._ws is not None and not self._ws.closed

    async def run(self) -> bool:
        """Connect and serve the connection until :meth:`stop` is called.

        Returns ``False`` if the connection could not be established.
        """
        async with aiohttp.ClientSession() as session:
            try:
                ws = await session.ws_connect(self.uri)
            except (aiohttp.ClientError, OSError, ValueError, asyncio.TimeoutError) as error:
                print(f"Error creating websocket: {error}")
                return False

            print("Websocket connected")
            self._ws = ws
            sender = asyncio.create_task(self._send_periodically())
            reader = asyncio.create_task(self._receive(ws, sender))
            stop_waiter = asyncio.create_task(self._stopped.wait())
            try:
                done, _ = await asyncio.wait(
                    {reader, stop_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                if reader in done:
                    # The connection is gone but the client keeps running until stopped.
                    await stop_waiter
                else:
                    await ws.close()
                    await reader
            finally:
                for task in (sender, reader, stop_waiter):
                    task.cancel()
                await asyncio.gather(sender, reader, stop_waiter, return_exceptions=True)
                if not ws.closed:
                    await ws.close()
        return True

    async def send_test_message(self) -> bool:
        """Send the test message if the connection is open; return whether it was sent."""
        if self._ws is not None and not self._ws.closed:
            try:
                await self._ws.send_str(TEST_MESSAGE)
            except ConnectionError:
                pass
            else:
                return True
        log.warning("Trying to send message using websocket that isn't open!")
        return False

    def stop(self) -> None:
        """Ask :meth:`run` to close the connection and return."""
        self._stopped.set()

    async def _send_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.send_test_message()

    async def _receive(self, ws: aiohttp.ClientWebSocketResponse, sender: asyncio.Task) -> None:
        try:
            async for msg in ws:
                if msg.type == WSMsgType.BINARY:
                    log.error("Received binary message, size: %d", len(msg.data))
                    self.received.append(msg.data)
                elif msg.type == WSMsgType.TEXT:
                    log.error("Received text message: %s", msg.data)
                    self.received.append(msg.data)
        finally:
            sender.cancel()
            log.debug("Connection closed remotely")


async def _run_until_interrupted(client: Client) -> bool:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, client.stop)
    except (NotImplementedError, RuntimeError):
        pass
    try:
        return await client.run()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def create_client(argv: list[str] | None = None) -> int:
    """Parse options and run a client until interrupted."""
    args = parse_args(argv)
    client = Client(args.websocket_uri)
    try:
        asyncio.run(_run_until_interrupted(client))
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None) -> int:
    """Command entry point."""
    return create_client(argv)


if __name__ == "__main__":
    raise SystemExit(main())