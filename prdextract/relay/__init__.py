"""SSE relay: framing, server and client."""

from .client import AnalysisHandle, ExtractionCallbacks, ExtractionClient, ExtractionClientError
from .frames import SENTINEL_FRAME, FrameDecoder, encode_frame
from .relay import EventRelay
from .server import ExtractionServer

__all__ = [
    "AnalysisHandle",
    "EventRelay",
    "ExtractionCallbacks",
    "ExtractionClient",
    "ExtractionClientError",
    "ExtractionServer",
    "FrameDecoder",
    "SENTINEL_FRAME",
    "encode_frame",
]
