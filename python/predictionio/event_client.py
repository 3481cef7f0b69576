"""
Blocking client for the PredictionIO Event API.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional, Union

from .config import ClientConfig, DEFAULT_EVENT_URL
from .connection import AsyncResponse, Connection, Response
from .errors import InvalidArgumentError
from .events import (
    Clock,
    EventBuilderMixin,
    EventQuery,
    EventRequests,
    Timestamp,
    build_event,
    check_created,
)

Result = Union[Response, AsyncResponse]


class EventClient(EventBuilderMixin):
    """
    Synchronous client for sending events to a PredictionIO Event Server.

    Every call also takes ``asynchronous=True``, in which case it returns an
    AsyncResponse right away. Pass that handle to ``wait`` (or call its
    ``result()``) to block until the response arrives.

    Example:
        client = EventClient("my-access-key")

        client.set_user("u1", {"age": 31})
        client.record_user_action_on_item("view", "u1", "i1")

        # Many requests in flight at once
        handles = [
            client.set_item(iid, {"categories": ["c1"]}, asynchronous=True)
            for iid in item_ids
        ]
        for handle in handles:
            client.wait(handle)
    """

    def __init__(
        self,
        access_key: str,
        url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        connection: Optional[Connection] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the client.

        Args:
            access_key: Access key of the app events are recorded for
            url: Event Server URL; overrides ``config.url``
            config: Timeout, retry and thread settings
            connection: Existing connection to reuse instead of opening one
            clock: Source of ``eventTime`` for events that carry none
        """
        self._requests = EventRequests(access_key, clock)
        if connection is not None:
            self._http = connection
            self._owns_connection = False
        else:
            config = config or ClientConfig()
            self._http = Connection(
                url or config.url or DEFAULT_EVENT_URL,
                timeout=config.timeout,
                max_retries=config.max_retries,
                retry_delay=config.retry_delay,
                threads=config.threads
            )
            self._owns_connection = True

    @classmethod
    def from_env(cls, prefix: str = "PIO_", **kwargs) -> "EventClient":
        """Create a client from ``PIO_ACCESS_KEY`` and the ``PIO_*`` settings."""
        access_key = os.environ.get(f"{prefix}ACCESS_KEY", "")
        if not access_key:
            raise InvalidArgumentError("access_key", f"{prefix}ACCESS_KEY is not set")
        config = ClientConfig.from_env(prefix, default_url=DEFAULT_EVENT_URL)
        return cls(access_key, config=config, **kwargs)

    @property
    def access_key(self) -> str:
        return self._requests.access_key

    @property
    def connection(self) -> Connection:
        return self._http

    def __enter__(self) -> "EventClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the underlying connection if this client opened it."""
        if self._owns_connection:
            self._http.close()

    def wait(self, handle: AsyncResponse) -> Any:
        """Block until an asynchronous call completes and return its result."""
        return self._http.get(handle)

    def get_status(self, asynchronous: bool = False) -> Union[str, AsyncResponse]:
        """Returns the Event Server's status text."""
        result = self._http.get(self._requests.status(), asynchronous=asynchronous)
        if asynchronous:
            return result.then(lambda response: response.text)
        return result.text

    def create_event(
        self,
        event: str,
        entity_type: str,
        entity_id: str,
        properties: Optional[Mapping[str, Any]] = None,
        *,
        event_time: Optional[Timestamp] = None,
        target_entity_type: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        pr_id: Optional[str] = None,
        asynchronous: bool = False
    ) -> Result:
        """
        Create an event.

        Corresponding REST API method: POST /events.json

        Args:
            event: Event name, e.g. "$set" or "buy"
            entity_type: Type of the entity the event is about
            entity_id: Id of that entity
            properties: Event properties
            event_time: When the event happened; defaults to the client clock
            target_entity_type: Type of the target entity, if any
            target_entity_id: Id of the target entity, if any
            pr_id: Id of the prediction this event gives feedback on
            asynchronous: Return an AsyncResponse instead of blocking

        Returns:
            The 201 Created response, or a handle resolving to it

        Raises:
            NotCreatedError: If the server did not create the event
            RequestTimeoutError: If the server could not be reached
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
        result = self._http.post(request, asynchronous=asynchronous)
        if asynchronous:
            return result.then(check_created)
        return check_created(result)

    def get_event(self, event_id: str, asynchronous: bool = False) -> Result:
        """
        Fetch a single event.

        Corresponding REST API method: GET /events/<event_id>.json
        """
        return self._http.get(self._requests.get(event_id), asynchronous=asynchronous)

    def delete_event(self, event_id: str, asynchronous: bool = False) -> Result:
        """
        Delete an event.

        Corresponding REST API method: DELETE /events/<event_id>.json
        """
        return self._http.delete(self._requests.delete(event_id), asynchronous=asynchronous)

    def find_events(
        self,
        params: Union[EventQuery, Mapping[str, Any], None] = None,
        asynchronous: bool = False
    ) -> Result:
        """
        Look up events matching ``params``.

        Corresponding REST API method: GET /events.json
        """
        return self._http.get(self._requests.find(params), asynchronous=asynchronous)
