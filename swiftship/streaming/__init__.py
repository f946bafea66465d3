"""
Streaming
=========

SSE frame protocol for chat replies: server-side emission and
client-side reassembly.
"""

from swiftship.streaming.protocol import StreamEvent, encode_event, SSEDecoder
from swiftship.streaming.emitter import StreamOptions, iter_text_chunks, stream_reply
from swiftship.streaming.assembler import StreamAssembler, iter_events, read_chat_stream

__all__ = [
    "StreamEvent",
    "encode_event",
    "SSEDecoder",
    "StreamOptions",
    "iter_text_chunks",
    "stream_reply",
    "StreamAssembler",
    "iter_events",
    "read_chat_stream",
]
