"""Wire message envelope, payload types and the ping handler."""

import dataclasses
import json
import typing
from dataclasses import dataclass, field
from typing import Any, Hashable, Optional, TypeVar

from p2pstorage.logger import Logger

TYPE_STORE_FILE = "STORE_FILE"
TYPE_STORE_FILE_RESP = "STORE_FILE_RESP"
TYPE_GET_FILE = "GET_FILE"
TYPE_ERROR = "ERROR"

STATUS_SUCCESS = "success"
STATUS_NOT_FOUND = "file not found"
STATUS_READ_FAILED = "failed to read file"
STATUS_EMPTY_KEY = "key cannot be empty"
STATUS_INVALID_MSG = "invalid message format"
STATUS_UNKNOWN_TYPE = "unknown message type"
STATUS_SESSION_REJECTED = "session rejected"
STATUS_ALREADY_EXISTS = "file already exists"

_OMIT = {"omitempty": True}
T = TypeVar("T")


@dataclass
class ProtocolConfig:
    """Stream limits; timeouts are in seconds."""

    max_message_size: int = 1 << 20
    read_timeout: float = 5.0
    write_timeout: float = 5.0
    handler_timeout: float = 5.0


@dataclass(frozen=True)
class Message:
    """Protocol envelope: a type tag and a raw JSON payload."""

    type: str
    data: Optional[str] = None

    def to_json(self) -> str:
        parts = ['"type":' + json.dumps(self.type)]
        if self.data:
            json.loads(self.data)
            parts.append('"data":' + self.data)
        return "{" + ",".join(parts) + "}"

    @classmethod
    def from_json(cls, text: typing.Union[str, bytes]) -> "Message":
        obj = json.loads(text)
        if not isinstance(obj, dict):
            raise ValueError("message must be a JSON object")
        msg_type = obj.get("type") or ""
        if not isinstance(msg_type, str):
            raise ValueError("message type must be a string")
        data = None
        if "data" in obj:
            data = json.dumps(obj["data"], separators=(",", ":"), ensure_ascii=False)
        return cls(type=msg_type, data=data)


@dataclass
class StoreFilePayload:
    key: str = ""
    session: str = field(default="", metadata=_OMIT)


@dataclass
class StoreFileRespPayload:
    key: str = field(default="", metadata=_OMIT)
    status: str = ""


@dataclass
class GetFilePayload:
    """Lookup request; ``ttl`` counts the remaining hops."""

    key: str = ""
    msg_id: str = ""
    ttl: int = 0
    requester_id: str = ""
    requester_addrs: list[str] = field(default_factory=list)


@dataclass
class ErrorPayload:
    reason: str = ""


def _to_plain(payload: Any) -> Any:
    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        out = {}
        for f in dataclasses.fields(payload):
            value = getattr(payload, f.name)
            if f.metadata.get("omitempty") and not value:
                continue
            out[f.name] = _to_plain(value)
        return out
    return payload


def new_message(msg_type: str, payload: Any) -> Message:
    """Build a message whose data is ``payload`` encoded as JSON."""
    try:
        data = json.dumps(_to_plain(payload), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"failed to marshal payload: {exc}") from exc
    return Message(type=msg_type, data=data)


_ZERO = {str: "", int: 0, float: 0.0, bool: False}


def _coerce(value: Any, expected: Any, name: str) -> Any:
    if expected is Any or expected is object:
        return value
    if typing.get_origin(expected) is list:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError(f"{name}: expected a list")
        (item_type,) = typing.get_args(expected) or (Any,)
        return [_coerce(item, item_type, f"{name}[]") for item in value]
    if expected in _ZERO:
        if value is None:
            return _ZERO[expected]
        if expected is float:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif expected is int:
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            ok = isinstance(value, expected)
        if not ok:
            raise ValueError(f"{name}: expected {expected.__name__}")
        return value
    if dataclasses.is_dataclass(expected):
        return _build(expected, value)
    raise TypeError(f"unsupported payload type: {expected!r}")


def _build(cls: type, value: Any) -> Any:
    if value is None:
        return cls()
    if not isinstance(value, dict):
        raise ValueError(f"{cls.__name__}: expected a JSON object")
    kwargs = {
        f.name: _coerce(value[f.name], f.type, f.name)
        for f in dataclasses.fields(cls)
        if f.name in value
    }
    return cls(**kwargs)


def decode(message: Message, payload_type: type[T]) -> T:
    """Parse ``message.data`` into ``payload_type``; raises ValueError on bad data."""
    if not message.data:
        raise ValueError("message has no data")
    value = json.loads(message.data)
    return _coerce(value, payload_type, payload_type.__name__)


@dataclass
class PingHandler:
    """Answers any message with a PONG."""

    logger: Logger

    def handle(self, peer_id: Hashable, msg: Any) -> Message:
        if not isinstance(msg, Message):
            raise TypeError("invalid message type")
        self.logger.info("message received", {"type": msg.type, "peer_id": peer_id})
        return new_message("PONG", "hello back")