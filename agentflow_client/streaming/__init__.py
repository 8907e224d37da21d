"""Streaming: frame decoding, stream events and stream sessions.

Provides the incremental NDJSON/concatenated-JSON decoder, the typed
StreamChunk event, and StreamSession, which owns one streaming response.
"""

from agentflow_client.streaming.decoder import ChunkDecoder, extract_first_object, iter_frames
from agentflow_client.streaming.events import OTHER_EVENT, StreamChunk, StreamEventType
from agentflow_client.streaming.session import STREAM_ACCEPT, STREAM_PATH, StreamSession

__all__ = [
    "OTHER_EVENT",
    "STREAM_ACCEPT",
    "STREAM_PATH",
    "ChunkDecoder",
    "StreamChunk",
    "StreamEventType",
    "StreamSession",
    "extract_first_object",
    "iter_frames",
]
