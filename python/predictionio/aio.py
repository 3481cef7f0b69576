"""
Asyncio clients for PredictionIO, built on aiohttp.

Example:
    async with AsyncEventClient("my-access-key") as client:
        await client.set_user("u1", {"age": 31})
        responses = await asyncio.gather(*[
            client.record_user_action_on_item("view", "u1", iid)
            for iid in item_ids
        ])
"""

from __future__ import annotations

import os
import asyncio
import logging
from typing import Any, Mapping, Optional, Union

import aiohttp

from .config import ClientConfig, DEFAULT_ENGINE_URL, DEFAULT_EVENT_URL
from .connection import Request, Response
from .engine_client import EngineRequests, check_feedback
from .errors import InvalidArgumentError, RequestTimeoutError
from .events import (
    Clock,
    EventBuilderMixin,
    EventQuery,
    EventRequests,
    Timestamp,
    build_event,
    check_created,
)

logger = logging.getLogger(__name__)


class AsyncConnection:
    """
    Asynchronous HTTP connection to a PredictionIO server.

    Connection failures are retried like the blocking Connection does; HTTP
    error statuses are returned as Response values.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        max_connections: int = 100,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the async connection.

        Args:
            url: Base URL of the server
            timeout: Per-attempt timeout in seconds
            max_retries: Total attempts made before giving up
            retry_delay: Base delay between attempts in seconds
            max_connections: Maximum concurrent connections
            session: Existing session to use; it is not closed by this object
        """
        if max_retries < 1:
            raise InvalidArgumentError("max_retries", "max_retries must be at least 1")
        if timeout < 0:
            raise InvalidArgumentError("timeout", "timeout cannot be negative")

        self.base_url = url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_connections = max_connections
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AsyncConnection":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Ensure session is created."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=aiohttp.TCPConnector(limit=self.max_connections)
            )
            self._owns_session = True

    async def close(self):
        """Close the client session."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def get(self, request: Request) -> Response:
        return await self.send(request, "GET")

    async def post(self, request: Request) -> Response:
        return await self.send(request, "POST")

    async def delete(self, request: Request) -> Response:
        return await self.send(request, "DELETE")

    async def send(self, request: Request, method: Optional[str] = None) -> Response:
        """Make async HTTP request, retrying connection failures."""
        await self._ensure_session()
        method = method or request.method
        url = request.url(self.base_url)
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            logger.debug(f"{method} {url} (attempt {attempt})")
            try:
                async with self._session.request(
                    method,
                    url,
                    data=request.body,
                    headers=request.headers()
                ) as response:
                    body = await response.read()
                    logger.debug(f"{method} {url} -> {response.status}")
                    return Response(
                        status_code=response.status,
                        body=body,
                        headers=dict(response.headers)
                    )

            except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(
                    f"{method} {url} failed (attempt {attempt}/{self.max_retries}): {e}"
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * attempt)

        logger.error(f"{method} {url} gave up after {self.max_retries} attempts")
        raise RequestTimeoutError(self.max_retries, last_error)


def _connection_from(
    url: Optional[str],
    config: Optional[ClientConfig],
    default_url: str
) -> AsyncConnection:
    config = config or ClientConfig()
    return AsyncConnection(
        url or config.url or default_url,
        timeout=config.timeout,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay
    )


class AsyncEventClient(EventBuilderMixin):
    """
    Asynchronous client for the PredictionIO Event API.

    Offers the same calls as EventClient as coroutines.
    """

    def __init__(
        self,
        access_key: str,
        url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        connection: Optional[AsyncConnection] = None,
        clock: Optional[Clock] = None
    ):
        self._requests = EventRequests(access_key, clock)
        self._owns_connection = connection is None
        self._http = connection or _connection_from(url, config, DEFAULT_EVENT_URL)

    @classmethod
    def from_env(cls, prefix: str = "PIO_", **kwargs) -> "AsyncEventClient":
        """Create a client from ``PIO_ACCESS_KEY`` and the ``PIO_*`` settings."""
        access_key = os.environ.get(f"{prefix}ACCESS_KEY", "")
        if not access_key:
            raise InvalidArgumentError("access_key", f"{prefix}ACCESS_KEY is not set")
        config = ClientConfig.from_env(prefix, default_url=DEFAULT_EVENT_URL)
        return cls(access_key, config=config, **kwargs)

    @property
    def connection(self) -> AsyncConnection:
        return self._http

    async def __aenter__(self) -> "AsyncEventClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_connection:
            await self._http.close()

    async def get_status(self) -> str:
        response = await self._http.get(self._requests.status())
        return response.text

    async def create_event(
        self,
        event: str,
        entity_type: str,
        entity_id: str,
        properties: Optional[Mapping[str, Any]] = None,
        *,
        event_time: Optional[Timestamp] = None,
        target_entity_type: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        pr_id: Optional[str] = None
    ) -> Response:
        """
        Create an event.

        Raises:
            NotCreatedError: If the server did not create the event
        """
        request = self._requests.create(build_event(
            event,
            entity_type,
            entity_id,
            properties,
            event_time=event_time,
            target_entity_type=target_entity_type,
            target_entity_id=target_entity_id,
            pr_id=pr_id
        ))
        return check_created(await self._http.post(request))

    async def get_event(self, event_id: str) -> Response:
        return await self._http.get(self._requests.get(event_id))

    async def delete_event(self, event_id: str) -> Response:
        return await self._http.delete(self._requests.delete(event_id))

    async def find_events(
        self,
        params: Union[EventQuery, Mapping[str, Any], None] = None
    ) -> Response:
        return await self._http.get(self._requests.find(params))


class AsyncEngineClient:
    """Asynchronous client for querying a deployed engine."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        connection: Optional[AsyncConnection] = None,
        feedback_client: Optional[AsyncEventClient] = None
    ):
        self._requests = EngineRequests()
        self.feedback_client = feedback_client
        self._owns_connection = connection is None
        self._http = connection or _connection_from(url, config, DEFAULT_ENGINE_URL)

    @classmethod
    def from_env(cls, prefix: str = "PIO_ENGINE_", **kwargs) -> "AsyncEngineClient":
        """Create a client from the ``PIO_ENGINE_*`` settings."""
        config = ClientConfig.from_env(prefix, default_url=DEFAULT_ENGINE_URL)
        return cls(config=config, **kwargs)

    @property
    def connection(self) -> AsyncConnection:
        return self._http

    async def __aenter__(self) -> "AsyncEngineClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_connection:
            await self._http.close()

    async def get_status(self) -> str:
        response = await self._http.get(self._requests.status())
        return response.text

    async def send_query(self, data: Mapping[str, Any]) -> Response:
        """Ask the engine for a prediction."""
        return await self._http.post(self._requests.query(data))

    async def send_feedback(
        self,
        pr_id: str,
        event: str,
        entity_type: str,
        entity_id: str,
        properties: Optional[Mapping[str, Any]] = None,
        **kwargs
    ) -> Response:
        """Record feedback on a served prediction through ``feedback_client``."""
        check_feedback(pr_id, self.feedback_client)
        return await self.feedback_client.create_event(
            event, entity_type, entity_id, properties, pr_id=pr_id, **kwargs
        )
