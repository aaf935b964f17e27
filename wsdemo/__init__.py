"""WebSocket demo: an aiohttp server on /ws, a client for it, and a shared stdout logger."""

__version__ = "0.0.1"