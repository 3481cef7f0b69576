"""
PredictionIO - Python SDK for the PredictionIO Event API and deployed engines.

This module provides the main public API:

- EventClient / AsyncEventClient: record and look up events
- EngineClient / AsyncEngineClient: query a deployed engine
- FileExporter: write events to a file for batch import

Example usage:

    from predictionio import EventClient, EngineClient

    events = EventClient("my-access-key", "http://localhost:7070")
    events.record_user_action_on_item("view", "u1", "i1")

    engine = EngineClient("http://localhost:8000")
    print(engine.send_query({"user": "u1", "num": 4}).json())

All blocking calls accept ``asynchronous=True`` and then return an
AsyncResponse; waiting on it blocks until the response arrives. Connection
failures are retried, and a RequestTimeoutError is raised once the retries
are used up.
"""

import logging

from .version import __version__
from .config import ClientConfig, DEFAULT_ENGINE_URL, DEFAULT_EVENT_URL
from .connection import AsyncResponse, Connection, Request, Response
from .errors import (
    InvalidArgumentError,
    NotCreatedError,
    PredictionIOError,
    RequestTimeoutError,
    ServerError,
)
from .events import Event, EventQuery
from .event_client import EventClient
from .engine_client import EngineClient
from .file_exporter import FileExporter
from .aio import AsyncConnection, AsyncEngineClient, AsyncEventClient

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Clients
    "EventClient",
    "EngineClient",
    "FileExporter",
    "AsyncEventClient",
    "AsyncEngineClient",

    # Transport
    "Connection",
    "AsyncConnection",
    "Request",
    "Response",
    "AsyncResponse",

    # Payloads
    "Event",
    "EventQuery",

    # Configuration
    "ClientConfig",
    "DEFAULT_EVENT_URL",
    "DEFAULT_ENGINE_URL",

    # Exceptions
    "PredictionIOError",
    "InvalidArgumentError",
    "NotCreatedError",
    "RequestTimeoutError",
    "ServerError",

    # Version
    "__version__",
]
