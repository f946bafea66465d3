"""
Stream Frame Protocol
=====================

Server-sent event frames carrying chat replies.

Each frame is `data: <json>\\n\\n` where the JSON object has a `type` of
chunk, metadata, sources or debug. A payload longer than the configured
line limit is split over several `data: ` lines of one frame; the
decoder concatenates them back. There is no terminal frame: the stream
ends when the connection closes.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from swiftship.config import StreamEventType, settings
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data: "


@dataclass
class StreamEvent:
    """One decoded frame; `payload` excludes the type key."""
    type: StreamEventType
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def chunk(cls, content: str) -> "StreamEvent":
        return cls(StreamEventType.CHUNK, {"content": content})

    @classmethod
    def metadata(cls, metadata: Dict[str, Any]) -> "StreamEvent":
        return cls(StreamEventType.METADATA, {"metadata": metadata})

    @classmethod
    def sources(cls, sources: List[Dict[str, Any]]) -> "StreamEvent":
        return cls(StreamEventType.SOURCES, {"sources": sources})

    @classmethod
    def debug(cls, debug: Dict[str, Any]) -> "StreamEvent":
        return cls(StreamEventType.DEBUG, {"debug": debug})

    @property
    def content(self) -> str:
        return self.payload.get("content", "")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, **self.payload}


def _split_utf8(text: str, max_bytes: int) -> List[str]:
    """Split text into pieces whose UTF-8 encoding fits max_bytes."""
    pieces = []
    current = []
    size = 0
    for char in text:
        char_size = len(char.encode("utf-8"))
        if size + char_size > max_bytes and current:
            pieces.append("".join(current))
            current = []
            size = 0
        current.append(char)
        size += char_size
    if current:
        pieces.append("".join(current))
    return pieces


def encode_event(event: StreamEvent, max_line_bytes: Optional[int] = None) -> str:
    """Serialize one event as an SSE frame."""
    limit = max_line_bytes or settings.stream_max_line_bytes
    body = json.dumps(event.to_dict(), ensure_ascii=False)
    if len(body.encode("utf-8")) <= limit:
        return f"{DATA_PREFIX}{body}\n\n"

    lines = "".join(f"{DATA_PREFIX}{piece}\n" for piece in _split_utf8(body, limit))
    return f"{lines}\n"


class SSEDecoder:
    """
    Incremental frame decoder.

    feed() accepts text split at any point, including inside a frame, a
    line or the `\\n\\n` delimiter, and returns only complete frames.
    Lines not starting with `data: ` are ignored, as are frames whose
    data is not a JSON object of a known type.
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, text: str) -> List[StreamEvent]:
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        events = []
        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            event = self._parse_frame(frame)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[StreamEvent]:
        """Decode whatever is buffered once the connection has closed."""
        frame, self._buffer = self._buffer, ""
        if not frame.strip():
            return []
        event = self._parse_frame(frame)
        return [event] if event is not None else []

    @property
    def pending(self) -> str:
        return self._buffer

    @staticmethod
    def _parse_frame(frame: str) -> Optional[StreamEvent]:
        data = "".join(
            line[len(DATA_PREFIX):]
            for line in frame.split("\n")
            if line.startswith(DATA_PREFIX)
        )
        if not data:
            return None

        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Skipping undecodable stream frame", extra={"frame": data[:200]})
            return None
        if not isinstance(payload, dict):
            return None

        try:
            event_type = StreamEventType(payload.pop("type", None))
        except ValueError:
            return None
        return StreamEvent(event_type, payload)
