# wsdemo

A small WebSocket demo built on aiohttp. It has a server that accepts
WebSocket connections on `/ws` and a client that connects to it and trades a
few messages.

## Installation

```
pip install .
```

## Running the server

```
ws-server
ws-server --host 127.0.0.1 --port 8080
```

By default the server binds all interfaces on port 8080. Only `GET /ws` takes
WebSocket connections. Every other HTTP request gets `404 Not Found`, and so
does a plain HTTP request to `/ws`.

When a client sends a text message, the server sends two replies. The first is
the text `OK, prepare to receive the binary data.`. The second is the binary
payload `This is some test binary data` followed by a NUL byte. Binary messages
from clients are logged and otherwise ignored. Press Ctrl+C to stop the server.

## Running the client

```
ws-client
ws-client --websocket-uri ws://127.0.0.1:8080/ws
ws-client -u ws://127.0.0.1:8080/ws
```

The URI defaults to `ws://127.0.0.1:8080/ws`. After it connects, the client
sends `Hi! from client. Please send some binary data.` every three seconds while
the connection is open, and it logs each message it receives. If the server
closes the connection, the client stops sending but keeps running until you
press Ctrl+C. If the connection cannot be made, the client prints the error and
exits. A bad command-line option prints `Option context parsing failed: ...`
and exits with status 1.

## Using it from Python

### Server

`wsdemo.server.Server(host=None, port=8080)` is an async server. You can also
use it as an async context manager.

- `await server.start()` starts listening. With `port=0` a free port is chosen,
  and `server.port` is updated to match.
- `await server.stop()` closes every client connection and stops listening.
- `server.client_ids` is a tuple of the ids of the connected clients, oldest
  first. Client ids are integers that count up from 1.
- `server.connect(event, callback)` registers a callback for a `ServerEvent`:
  - `WS_CLIENT_CONNECTED` and `WS_CLIENT_DISCONNECTED` pass the client id.
  - `DATA_CHUNK_DESCRIPTOR` passes the client id and the SDP text.
- `await server.send_to_client(client_id, text)` sends text to one client.
  `await server.send_json_to_client(client_id, message)` sends `message` as
  JSON indented by two spaces. Both return `False` when the client is unknown
  or its connection is closed.
- `server.handle_json_message(client_id, data)` parses a JSON message. When its
  `msg` is `"answer"`, it emits `DATA_CHUNK_DESCRIPTOR` with the message's
  `sdp`. Input that is not valid JSON, or that has no `msg` member, is ignored.

```python
import asyncio
from wsdemo.server import Server, ServerEvent

async def run():
    async with Server(host="127.0.0.1", port=8080) as server:
        server.connect(ServerEvent.WS_CLIENT_CONNECTED, lambda cid: print("connected", cid))
        server.connect(ServerEvent.WS_CLIENT_DISCONNECTED, lambda cid: print("gone", cid))
        await asyncio.sleep(60)

asyncio.run(run())
```

### Client

`wsdemo.client.Client(uri="ws://127.0.0.1:8080/ws", interval=3.0)` runs the
client.

- `await client.run()` connects and runs until `client.stop()` is called. It
  returns `False` if the connection could not be made.
- `client.received` collects the text and binary messages the client has
  received.
- `client.connected` tells whether the connection is open.
- `await client.send_test_message()` sends the greeting once and returns
  whether it was sent.

`wsdemo.client.handle_json_message(data)` parses a signalling message and
returns its `msg` type. It returns `None` for input that is not JSON, or that
has no `msg` member. `wsdemo.client.parse_args(argv)` parses the client's
command line.

```python
import asyncio
from wsdemo.client import Client

asyncio.run(Client("ws://127.0.0.1:8080/ws", interval=3).run())
```

Both modules log through `wsdemo.logger.get_logger()`. It writes plain
messages to standard output.

## What it does not do

Neither the server nor the client passes the messages it receives to its JSON
handler. The server answers every text message with the same fixed replies,
and the client only logs what arrives. The `offer`, `candidate` and `answer`
message types are recognised only when you call `handle_json_message`
yourself. Nothing acts on the SDP or the candidates.

## Tests

```
pip install .[test]
pytest
```