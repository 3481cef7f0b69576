"""
Blocking client for a deployed PredictionIO engine.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from .config import ClientConfig, DEFAULT_ENGINE_URL
from .connection import AsyncResponse, Connection, Request, Response
from .errors import InvalidArgumentError
from .event_client import EventClient

Result = Union[Response, AsyncResponse]


class EngineRequests:
    """Builds Engine API requests."""

    def status(self) -> Request:
        return Request("GET", "/")

    def query(self, data: Mapping[str, Any]) -> Request:
        return Request.json("POST", "/queries.json", dict(data))


def check_feedback(pr_id: Optional[str], feedback_client: Any):
    if feedback_client is None:
        raise InvalidArgumentError(
            "feedback_client", "no feedback client is configured for this engine"
        )
    if not pr_id:
        raise InvalidArgumentError("pr_id", "pr_id cannot be empty when sending feedback")


class EngineClient:
    """
    Synchronous client for querying a deployed engine.

    Example:
        engine = EngineClient("http://localhost:8000")

        response = engine.send_query({"user": "u1", "num": 4})
        for score in response.json()["itemScores"]:
            print(score["item"], score["score"])
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        connection: Optional[Connection] = None,
        feedback_client: Optional[EventClient] = None
    ):
        """
        Initialize the client.

        Args:
            url: Engine server URL; overrides ``config.url``
            config: Timeout, retry and thread settings
            connection: Existing connection to reuse instead of opening one
            feedback_client: Event client that records prediction feedback
        """
        self._requests = EngineRequests()
        self.feedback_client = feedback_client
        if connection is not None:
            self._http = connection
            self._owns_connection = False
        else:
            config = config or ClientConfig()
            self._http = Connection(
                url or config.url or DEFAULT_ENGINE_URL,
                timeout=config.timeout,
                max_retries=config.max_retries,
                retry_delay=config.retry_delay,
                threads=config.threads
            )
            self._owns_connection = True

    @classmethod
    def from_env(cls, prefix: str = "PIO_ENGINE_", **kwargs) -> "EngineClient":
        """Create a client from the ``PIO_ENGINE_*`` settings."""
        config = ClientConfig.from_env(prefix, default_url=DEFAULT_ENGINE_URL)
        return cls(config=config, **kwargs)

    @property
    def connection(self) -> Connection:
        return self._http

    def __enter__(self) -> "EngineClient":
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
        """Returns the engine server's status text."""
        result = self._http.get(self._requests.status(), asynchronous=asynchronous)
        if asynchronous:
            return result.then(lambda response: response.text)
        return result.text

    def send_query(self, data: Mapping[str, Any], asynchronous: bool = False) -> Result:
        """
        Ask the engine for a prediction.

        Corresponding REST API method: POST /queries.json

        Args:
            data: Query understood by the deployed engine
            asynchronous: Return an AsyncResponse instead of blocking

        Returns:
            The engine's response; error statuses are returned, not raised
        """
        return self._http.post(self._requests.query(data), asynchronous=asynchronous)

    def send_feedback(
        self,
        pr_id: str,
        event: str,
        entity_type: str,
        entity_id: str,
        properties: Optional[Mapping[str, Any]] = None,
        **kwargs
    ) -> Result:
        """
        Record feedback on a served prediction.

        The feedback is an event tagged with the prediction's ``prId``, sent
        through ``feedback_client``. Extra keyword arguments are passed on to
        ``EventClient.create_event``.
        """
        check_feedback(pr_id, self.feedback_client)
        return self.feedback_client.create_event(
            event, entity_type, entity_id, properties, pr_id=pr_id, **kwargs
        )
