"""
Stream Emitter
==============

Server side of the chat stream: splits a reply into chunk frames using
the strategy chosen in StreamOptions and wraps them with metadata,
sources and debug frames.

Strategies:
- whole: the reply as one chunk
- sized: fixed-size character chunks with a short pause between them
- typing: word by word, whitespace kept, a "\\n" chunk between lines
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple

from swiftship.config import AgentName, StreamMode, settings
from swiftship.streaming.protocol import StreamEvent, encode_event
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_WORD_SPLIT = re.compile(r"(\s+)")


@dataclass
class StreamOptions:
    """How a reply is chunked; delays are in milliseconds."""
    mode: StreamMode = StreamMode.WHOLE
    chunk_size: int = 1000
    chunk_delay_ms: int = 10
    typing_delay_ms: int = 20
    line_delay_ms: int = 50

    @classmethod
    def for_mode(cls, mode: StreamMode) -> "StreamOptions":
        return cls(
            mode=mode,
            chunk_size=settings.stream_chunk_size,
            chunk_delay_ms=settings.stream_chunk_delay_ms,
            typing_delay_ms=settings.stream_typing_delay_ms,
            line_delay_ms=settings.stream_line_delay_ms,
        )

    @classmethod
    def for_agent(cls, agent: AgentName, override: Optional[str] = None) -> "StreamOptions":
        """Configured mode for the agent, unless a valid override is given."""
        mode = StreamMode(settings.stream_modes.get(agent.value, StreamMode.WHOLE.value))
        if override:
            try:
                mode = StreamMode(str(override).lower())
            except ValueError:
                logger.warning("Ignoring unknown stream mode", extra={"stream_mode": override})
        return cls.for_mode(mode)


def iter_text_chunks(text: str, options: StreamOptions) -> Iterator[Tuple[str, float]]:
    """
    Yield (piece, delay_seconds) pairs.

    Joining the pieces always gives back the original text.
    """
    if not text:
        return

    if options.mode == StreamMode.WHOLE:
        yield text, 0.0
        return

    if options.mode == StreamMode.SIZED:
        delay = options.chunk_delay_ms / 1000
        for start in range(0, len(text), options.chunk_size):
            yield text[start:start + options.chunk_size], delay
        return

    lines = text.split("\n")
    for index, line in enumerate(lines):
        for word in _WORD_SPLIT.split(line):
            if word:
                yield word, options.typing_delay_ms / 1000
        if index < len(lines) - 1:
            yield "\n", options.line_delay_ms / 1000


async def stream_reply(
    content: str,
    options: StreamOptions,
    head: Dict[str, Any],
    tail: Dict[str, Any],
    sources: Optional[List[Dict[str, Any]]] = None,
    debug: Optional[Dict[str, Any]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> AsyncIterator[str]:
    """
    Emit frames in order: head metadata, chunks, tail metadata, then
    sources and debug when given.
    """
    yield encode_event(StreamEvent.metadata(head))

    for piece, delay in iter_text_chunks(content, options):
        yield encode_event(StreamEvent.chunk(piece))
        if delay:
            await sleep(delay)

    yield encode_event(StreamEvent.metadata(tail))

    if sources:
        yield encode_event(StreamEvent.sources(sources))
    if debug is not None:
        yield encode_event(StreamEvent.debug(debug))
