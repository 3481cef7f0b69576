"""
Event payloads and the request builders shared by every event client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import quote
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .connection import Request, Response
from .errors import InvalidArgumentError, NotCreatedError

Clock = Callable[[], datetime]
Timestamp = Union[datetime, str]

SET = "$set"
UNSET = "$unset"
DELETE = "$delete"

USER = "user"
ITEM = "item"


def local_now() -> datetime:
    """Current time as a timezone-aware datetime in the local zone."""
    return datetime.now().astimezone()


def format_time(value: Timestamp) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class Event:
    """An event as accepted by the Event API."""
    event: str
    entity_type: str
    entity_id: str
    properties: Dict[str, Any] = field(default_factory=dict)
    event_time: Optional[Timestamp] = None
    target_entity_type: Optional[str] = None
    target_entity_id: Optional[str] = None
    pr_id: Optional[str] = None

    def to_dict(self, clock: Clock = local_now) -> Dict[str, Any]:
        """
        Convert the event to its JSON wire form.

        ``eventTime`` is taken from ``clock`` when the event has none.
        """
        event_time = self.event_time if self.event_time is not None else clock()
        result = {
            "event": self.event,
            "entityType": self.entity_type,
            "entityId": str(self.entity_id),
            "eventTime": format_time(event_time),
        }

        if self.properties:
            result["properties"] = dict(self.properties)
        if self.target_entity_type is not None:
            result["targetEntityType"] = self.target_entity_type
        if self.target_entity_id is not None:
            result["targetEntityId"] = str(self.target_entity_id)
        if self.pr_id is not None:
            result["prId"] = self.pr_id

        return result


@dataclass
class EventQuery:
    """Filters for looking up events."""
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    event_names: List[str] = field(default_factory=list)
    target_entity_type: Optional[str] = None
    target_entity_id: Optional[str] = None
    start_time: Optional[Timestamp] = None
    until_time: Optional[Timestamp] = None
    limit: Optional[int] = None
    reversed: Optional[bool] = None

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.entity_type is not None:
            params["entityType"] = self.entity_type
        if self.entity_id is not None:
            params["entityId"] = str(self.entity_id)
        if self.event_names:
            params["event"] = list(self.event_names)
        if self.target_entity_type is not None:
            params["targetEntityType"] = self.target_entity_type
        if self.target_entity_id is not None:
            params["targetEntityId"] = str(self.target_entity_id)
        if self.start_time is not None:
            params["startTime"] = format_time(self.start_time)
        if self.until_time is not None:
            params["untilTime"] = format_time(self.until_time)
        if self.limit is not None:
            params["limit"] = str(self.limit)
        if self.reversed is not None:
            params["reversed"] = "true" if self.reversed else "false"
        return params


def check_unset_properties(properties: Optional[Mapping[str, Any]]):
    """Unsetting requires naming at least one property."""
    if properties is None:
        raise InvalidArgumentError(
            "properties", "properties must be present when event is $unset"
        )
    if not properties:
        raise InvalidArgumentError(
            "properties", "properties cannot be empty when event is $unset"
        )


def check_created(response: Response) -> Response:
    if response.status_code != 201:
        raise NotCreatedError(response)
    return response


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_query_value(v) for v in value]
    return str(value)


class EventRequests:
    """
    Builds Event API requests for one access key.

    Both the blocking and the asyncio event clients send what this class
    builds, so the two flavors put identical requests on the wire.
    """

    def __init__(self, access_key: str, clock: Optional[Clock] = None):
        if not access_key:
            raise InvalidArgumentError("access_key", "access_key cannot be empty")
        self.access_key = access_key
        self.clock = clock or local_now

    def _auth(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        merged = {
            key: _query_value(value)
            for key, value in (params or {}).items()
            if value is not None
        }
        merged["accessKey"] = self.access_key
        return merged

    def status(self) -> Request:
        return Request("GET", "/")

    def create(self, event: Event) -> Request:
        return Request.json(
            "POST", "/events.json", event.to_dict(self.clock), params=self._auth()
        )

    def _event_path(self, event_id: str) -> str:
        return f"/events/{quote(str(event_id), safe='')}.json"

    def get(self, event_id: str) -> Request:
        return Request("GET", self._event_path(event_id), params=self._auth())

    def delete(self, event_id: str) -> Request:
        return Request("DELETE", self._event_path(event_id), params=self._auth())

    def find(self, params: Union[EventQuery, Mapping[str, Any], None] = None) -> Request:
        if isinstance(params, EventQuery):
            params = params.to_params()
        return Request("GET", "/events.json", params=self._auth(params))


def build_event(
    event: str,
    entity_type: str,
    entity_id: str,
    properties: Optional[Mapping[str, Any]] = None,
    event_time: Optional[Timestamp] = None,
    target_entity_type: Optional[str] = None,
    target_entity_id: Optional[str] = None,
    pr_id: Optional[str] = None
) -> Event:
    return Event(
        event=event,
        entity_type=entity_type,
        entity_id=entity_id,
        properties=dict(properties or {}),
        event_time=event_time,
        target_entity_type=target_entity_type,
        target_entity_id=target_entity_id,
        pr_id=pr_id
    )


class EventBuilderMixin:
    """
    User/item convenience calls expressed through ``create_event``.

    Mixed into every class that has a ``create_event`` taking the event
    name, entity type, entity id and properties.
    """

    def set_user(self, uid: str, properties: Optional[Mapping[str, Any]] = None, **kwargs):
        """Set properties of a user."""
        return self.create_event(SET, USER, uid, properties, **kwargs)

    def unset_user(self, uid: str, properties: Optional[Mapping[str, Any]] = None, **kwargs):
        """Unset properties of a user. ``properties`` must be non-empty."""
        check_unset_properties(properties)
        return self.create_event(UNSET, USER, uid, properties, **kwargs)

    def delete_user(self, uid: str, **kwargs):
        """Delete a user."""
        return self.create_event(DELETE, USER, uid, {}, **kwargs)

    def set_item(self, iid: str, properties: Optional[Mapping[str, Any]] = None, **kwargs):
        """Set properties of an item."""
        return self.create_event(SET, ITEM, iid, properties, **kwargs)

    def unset_item(self, iid: str, properties: Optional[Mapping[str, Any]] = None, **kwargs):
        """Unset properties of an item. ``properties`` must be non-empty."""
        check_unset_properties(properties)
        return self.create_event(UNSET, ITEM, iid, properties, **kwargs)

    def delete_item(self, iid: str, **kwargs):
        """Delete an item."""
        return self.create_event(DELETE, ITEM, iid, {}, **kwargs)

    def record_user_action_on_item(
        self,
        action: str,
        uid: str,
        iid: str,
        properties: Optional[Mapping[str, Any]] = None,
        **kwargs
    ):
        """Record a user's action (e.g. "view", "buy") on an item."""
        kwargs["target_entity_type"] = ITEM
        kwargs["target_entity_id"] = iid
        return self.create_event(action, USER, uid, properties, **kwargs)
