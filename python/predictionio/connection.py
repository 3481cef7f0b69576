"""
HTTP transport for the PredictionIO client SDK.

Provides immutable request/response values and a blocking connection that
can also dispatch requests to a worker pool and hand back an AsyncResponse.
"""

from __future__ import annotations

import json
import time
import logging
import http.client
import urllib.request
import urllib.error
import urllib.parse
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from .errors import InvalidArgumentError, RequestTimeoutError, ServerError
from .version import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"PredictionIO Python SDK/{__version__}"

ParamValue = Union[str, Sequence[str]]


@dataclass(frozen=True)
class Request:
    """A single HTTP call: method, path, query parameters and JSON body."""
    method: str
    path: str
    params: Mapping[str, ParamValue] = field(default_factory=dict, hash=False)
    body: Optional[bytes] = None

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def json(
        cls,
        method: str,
        path: str,
        data: Any,
        params: Optional[Mapping[str, ParamValue]] = None
    ) -> "Request":
        """Build a request whose body is ``data`` encoded as JSON."""
        return cls(
            method=method,
            path=path,
            params=params or {},
            body=json.dumps(data).encode("utf-8")
        )

    @property
    def query_string(self) -> str:
        return urllib.parse.urlencode(self.params, doseq=True)

    def url(self, base_url: str) -> str:
        """Full URL of this request against ``base_url``."""
        url = f"{base_url.rstrip('/')}{self.path}"
        if self.params:
            url = f"{url}?{self.query_string}"
        return url

    def headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if self.body is not None:
            headers["Content-Type"] = "application/json"
        return headers


@dataclass(frozen=True)
class Response:
    """Status, body and headers of a completed HTTP call."""
    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.text)

    def raise_for_status(self) -> "Response":
        """
        Raise ServerError if the service answered with an error status.

        Returns:
            The response itself, so calls can be chained.
        """
        if self.status_code < 400:
            return self
        message = self.text
        try:
            payload = self.json()
            if isinstance(payload, dict):
                message = payload.get("message", payload.get("error", message))
        except json.JSONDecodeError:
            pass
        raise ServerError(self.status_code, message)


ResponseHandler = Callable[[Response], Any]


class AsyncResponse:
    """
    Handle for a request running on a connection's worker pool.

    The handle is resolved by a later blocking wait, either through
    ``result()`` or by passing it to a connection verb in place of a request.
    An optional handler post-processes the response (for example to check
    that an event was created); waiting again yields the same outcome.
    """

    def __init__(self, future: "Future[Response]", handler: Optional[ResponseHandler] = None):
        self._future = future
        self._handler = handler

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        response = self._future.result(timeout)
        if self._handler is None:
            return response
        return self._handler(response)

    def then(self, handler: ResponseHandler) -> "AsyncResponse":
        """Return a handle that applies ``handler`` to the resolved response."""
        if self._handler is None:
            return AsyncResponse(self._future, handler)
        previous = self._handler
        return AsyncResponse(self._future, lambda response: handler(previous(response)))


RequestOrHandle = Union[Request, AsyncResponse]


class Connection:
    """
    Blocking HTTP connection to a PredictionIO server.

    Example:
        with Connection("http://localhost:7070") as http:
            response = http.get(Request("GET", "/"))

            # Fire several requests, then wait on each handle
            handles = [http.post(r, asynchronous=True) for r in requests]
            responses = [http.post(h) for h in handles]
    """

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        threads: int = 1,
        opener: Callable[..., Any] = urllib.request.urlopen
    ):
        """
        Initialize the connection.

        Args:
            url: Base URL of the server (e.g., "http://localhost:7070")
            timeout: Per-attempt timeout in seconds
            max_retries: Total attempts made before giving up
            retry_delay: Base delay between attempts in seconds
            threads: Worker threads serving asynchronous requests
            opener: Callable with the signature of urllib.request.urlopen
        """
        if max_retries < 1:
            raise InvalidArgumentError("max_retries", "max_retries must be at least 1")
        if threads < 1:
            raise InvalidArgumentError("threads", "threads must be at least 1")
        if timeout < 0:
            raise InvalidArgumentError("timeout", "timeout cannot be negative")

        self.base_url = url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.threads = threads
        self._opener = opener
        self._executor = ThreadPoolExecutor(
            max_workers=threads,
            thread_name_prefix="predictionio"
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Stop the worker pool, waiting for in-flight requests."""
        self._executor.shutdown(wait=True)

    def get(self, request: RequestOrHandle, asynchronous: bool = False):
        return self.send(request, "GET", asynchronous)

    def post(self, request: RequestOrHandle, asynchronous: bool = False):
        return self.send(request, "POST", asynchronous)

    def delete(self, request: RequestOrHandle, asynchronous: bool = False):
        return self.send(request, "DELETE", asynchronous)

    def send(
        self,
        request: RequestOrHandle,
        method: Optional[str] = None,
        asynchronous: bool = False
    ) -> Union[Response, AsyncResponse, Any]:
        """
        Dispatch a request, or wait on a handle from an earlier dispatch.

        Args:
            request: Request to send, or an AsyncResponse to wait on
            method: HTTP verb overriding the request's own method
            asynchronous: Return an AsyncResponse instead of blocking

        Returns:
            Response for a synchronous call, AsyncResponse otherwise

        Raises:
            RequestTimeoutError: If every attempt failed at the connection level
        """
        if isinstance(request, AsyncResponse):
            return request if asynchronous else request.result()

        if method is not None and method != request.method:
            request = replace(request, method=method)

        if asynchronous:
            return AsyncResponse(self._executor.submit(self._request, request))
        return self._request(request)

    def _request(self, request: Request) -> Response:
        """Make HTTP request to server, retrying connection failures."""
        url = request.url(self.base_url)
        headers = request.headers()
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            req = urllib.request.Request(
                url,
                data=request.body,
                headers=headers,
                method=request.method
            )
            logger.debug(f"{request.method} {url} (attempt {attempt})")
            try:
                with self._opener(req, timeout=self.timeout) as response:
                    result = Response(
                        status_code=response.status,
                        body=response.read(),
                        headers=dict(response.headers.items())
                    )
                logger.debug(f"{request.method} {url} -> {result.status_code}")
                return result

            except urllib.error.HTTPError as e:
                # Application-level errors are data for the caller
                logger.debug(f"{request.method} {url} -> {e.code}")
                return Response(
                    status_code=e.code,
                    body=e.read() or b"",
                    headers=dict(e.headers.items()) if e.headers else {}
                )

            except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
                last_error = e
                logger.warning(
                    f"{request.method} {url} failed "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )
                if attempt < self.max_retries:
                    time.sleep(self.retry_delay * attempt)

        logger.error(f"{request.method} {url} gave up after {self.max_retries} attempts")
        raise RequestTimeoutError(self.max_retries, last_error)
