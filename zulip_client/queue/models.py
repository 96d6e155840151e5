"""Event queue wire models."""
import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from zulip_client.logging_conf import logger

HEARTBEAT = "heartbeat"


class EventOp(str, Enum):
    UPDATE = "update"
    ADD = "add"
    REMOVE = "remove"
    PEER_ADD = "peer_add"
    PEER_REMOVE = "peer_remove"
    CREATE = "create"
    DELETE = "delete"
    START = "start"
    STOP = "stop"
    ADD_MEMBERS = "add_members"
    REMOVE_MEMBERS = "remove_members"
    ADD_SUBGROUPS = "add_subgroups"
    REMOVE_SUBGROUPS = "remove_subgroups"
    CHANGE = "change"
    DEACTIVATED = "deactivated"
    UPDATE_DICT = "update_dict"


@dataclass(frozen=True)
class Event:
    """A single event delivered by the events endpoint."""

    id: int
    type: str
    op: Optional[EventOp] = None
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        event_id = data["id"]
        event_type = data["type"]
        if isinstance(event_id, bool) or not isinstance(event_id, int):
            raise TypeError(f"event id must be an integer, got {event_id!r}")
        if not isinstance(event_type, str):
            raise TypeError(f"event type must be a string, got {event_type!r}")

        op = None
        raw_op = data.get("op")
        if raw_op is not None:
            try:
                op = EventOp(raw_op)
            except ValueError:
                logger.debug(f"Unknown op {raw_op!r} on {event_type} event {event_id}")

        return cls(id=event_id, type=event_type, op=op, payload=data)

    @property
    def is_heartbeat(self) -> bool:
        return self.type == HEARTBEAT


@dataclass
class EventsResponse:
    events: List[Event]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(events=[Event.from_dict(e) for e in data["events"]])


@dataclass
class ClientCapabilities:
    """Capabilities announced to the server on registration."""

    notification_settings_null: bool = True
    bulk_message_deletion: bool = True
    user_avatar_url_field_optional: bool = True
    stream_typing_notifications: bool = True
    user_settings_object: bool = True


@dataclass
class RegisterQueueRequest:
    """Parameters of a register call. Unset fields are not sent."""

    apply_markdown: Optional[bool] = None
    client_gravatar: Optional[bool] = None
    slim_presence: Optional[bool] = None
    event_types: Optional[List[str]] = None
    all_public_streams: Optional[bool] = None
    include_subscribers: Optional[bool] = None
    narrow: Optional[List[Tuple[str, str]]] = None
    client_capabilities: ClientCapabilities = field(default_factory=ClientCapabilities)

    def to_params(self) -> Dict[str, str]:
        """Form fields, JSON-encoded the way the server parses them."""
        params = {}
        for name in ("apply_markdown", "client_gravatar", "slim_presence",
                     "all_public_streams", "include_subscribers"):
            value = getattr(self, name)
            if value is not None:
                params[name] = json.dumps(value)
        if self.event_types is not None:
            params["event_types"] = json.dumps(self.event_types)
        if self.narrow is not None:
            params["narrow"] = json.dumps([list(pair) for pair in self.narrow])
        params["client_capabilities"] = json.dumps(asdict(self.client_capabilities))
        return params


@dataclass
class RegisterQueueResponse:
    queue_id: str
    last_event_id: int
    zulip_version: Optional[str] = None
    zulip_feature_level: Optional[int] = None
    zulip_merge_base: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        queue_id = data["queue_id"]
        last_event_id = data["last_event_id"]
        if not isinstance(queue_id, str):
            raise TypeError(f"queue_id must be a string, got {queue_id!r}")
        if isinstance(last_event_id, bool) or not isinstance(last_event_id, int):
            raise TypeError(f"last_event_id must be an integer, got {last_event_id!r}")
        return cls(
            queue_id=queue_id,
            last_event_id=last_event_id,
            zulip_version=data.get("zulip_version"),
            zulip_feature_level=data.get("zulip_feature_level"),
            zulip_merge_base=data.get("zulip_merge_base"),
        )
