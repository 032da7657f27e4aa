# backend/events.py
"""
Wire format of the /process-message stream.

Each event is one server-sent-events line ``data: <json>\\n\\n`` carrying one of
three payloads:

    {"content": "..."}   a token fragment to append
    {"done": true}       terminal success marker
    {"error": "..."}     terminal failure marker

The parser is transport agnostic: feed it decoded text in whatever chunks the
transport delivers and it returns the complete events seen so far.
"""
import json
from dataclasses import dataclass
from typing import List, Union

DATA_PREFIX = "data: "


class StreamProtocolError(ValueError):
    """Raised for a `data:` line that is not one of the three event shapes."""


@dataclass(frozen=True)
class ContentEvent:
    content: str


@dataclass(frozen=True)
class DoneEvent:
    pass


@dataclass(frozen=True)
class ErrorEvent:
    error: str


Event = Union[ContentEvent, DoneEvent, ErrorEvent]


def is_terminal(event: Event) -> bool:
    return isinstance(event, (DoneEvent, ErrorEvent))


def encode_event(event: Event) -> str:
    if isinstance(event, ContentEvent):
        payload = {"content": event.content}
    elif isinstance(event, DoneEvent):
        payload = {"done": True}
    elif isinstance(event, ErrorEvent):
        payload = {"error": event.error}
    else:
        raise TypeError(f"Unknown event type: {type(event).__name__}")
    return f"{DATA_PREFIX}{json.dumps(payload)}\n\n"


def decode_event(payload: str) -> Event:
    """Decode the JSON part of a `data:` line."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StreamProtocolError(f"Malformed event payload: {payload[:80]!r}") from e
    if not isinstance(data, dict):
        raise StreamProtocolError(f"Event payload is not an object: {payload[:80]!r}")

    if isinstance(data.get("content"), str):
        return ContentEvent(data["content"])
    if data.get("done") is True:
        return DoneEvent()
    if "error" in data:
        return ErrorEvent(str(data["error"]))
    raise StreamProtocolError(f"Unknown event payload: {payload[:80]!r}")


class EventStreamParser:
    """Incremental parser; keeps the trailing partial line between feeds."""

    def __init__(self):
        self._buffer = ""

    def feed(self, text: str) -> List[Event]:
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return [self._parse_line(line) for line in lines if line.startswith(DATA_PREFIX)]

    def close(self) -> List[Event]:
        """Flush a final line that arrived without a trailing newline."""
        rest, self._buffer = self._buffer, ""
        if rest.startswith(DATA_PREFIX):
            return [self._parse_line(rest)]
        return []

    @staticmethod
    def _parse_line(line: str) -> Event:
        return decode_event(line[len(DATA_PREFIX):].rstrip("\r"))
