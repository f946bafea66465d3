"""
Stream Assembler
================

Client side of the chat stream: decodes frames as bytes arrive and
accumulates the reply, its metadata and its sources.
"""

import codecs
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from swiftship.config import StreamEventType
from swiftship.streaming.protocol import SSEDecoder, StreamEvent


class StreamAssembler:
    """
    Rebuilds one streamed reply.

    Metadata frames are merged in arrival order; metadata.quote is the
    quote state to send back with the next turn.
    """

    def __init__(self):
        self._decoder = SSEDecoder()
        self._chunks: List[str] = []
        self.metadata: Dict[str, Any] = {}
        self.sources: List[Dict[str, Any]] = []
        self.debug: List[Dict[str, Any]] = []

    def apply(self, event: StreamEvent) -> None:
        if event.type == StreamEventType.CHUNK:
            self._chunks.append(event.content)
        elif event.type == StreamEventType.METADATA:
            self.metadata.update(event.payload.get("metadata") or {})
        elif event.type == StreamEventType.SOURCES:
            self.sources.extend(event.payload.get("sources") or [])
        elif event.type == StreamEventType.DEBUG:
            self.debug.append(event.payload.get("debug") or {})

    def feed(self, text: str) -> List[StreamEvent]:
        events = self._decoder.feed(text)
        for event in events:
            self.apply(event)
        return events

    def finish(self) -> List[StreamEvent]:
        events = self._decoder.flush()
        for event in events:
            self.apply(event)
        return events

    @property
    def content(self) -> str:
        return "".join(self._chunks)

    @property
    def agent(self) -> Optional[str]:
        return self.metadata.get("agent")

    @property
    def quote_state(self) -> Optional[Dict[str, Any]]:
        return self.metadata.get("quote")


async def iter_events(byte_iterator: AsyncIterator[bytes]) -> AsyncIterator[StreamEvent]:
    """Decode frames from raw bytes, tolerating multi-byte characters split across reads."""
    decoder = SSEDecoder()
    utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    async for data in byte_iterator:
        for event in decoder.feed(utf8.decode(data)):
            yield event

    for event in decoder.feed(utf8.decode(b"", final=True)):
        yield event
    for event in decoder.flush():
        yield event


async def read_chat_stream(
    client: httpx.AsyncClient,
    url: str,
    payload: Dict[str, Any]
) -> StreamAssembler:
    """
    POST a chat request and assemble the streamed reply.

    Raises:
        httpx.HTTPStatusError: If the server rejects the request
    """
    assembler = StreamAssembler()
    async with client.stream("POST", url, json=payload) as response:
        if response.status_code >= 400:
            await response.aread()
            response.raise_for_status()
        async for event in iter_events(response.aiter_bytes()):
            assembler.apply(event)
    return assembler
