"""Server-Sent Events framing for extraction events.

Each event is one ``data: <json>`` frame followed by a blank line. The end of
a session is marked by the literal sentinel frame ``data: [DONE]``.
"""

import logging

from pydantic import ValidationError

from ..types.types import ExtractionEvent, parse_event

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
SENTINEL = "[DONE]"
SENTINEL_FRAME = f"{DATA_PREFIX}{SENTINEL}\n\n"

IDENTITY_HEADER = "X-User-ID"


def encode_frame(event: ExtractionEvent) -> str:
    """Serialize one event as an SSE frame."""
    return f"{DATA_PREFIX}{event.to_json()}\n\n"


class FrameDecoder:
    """Turns complete SSE lines back into events.

    Returns ``None`` for lines that carry no event (blank separators,
    comments, keepalives, malformed payloads). ``done`` flips once the
    sentinel is seen.
    """

    def __init__(self):
        self.done = False

    def decode_line(self, line: str) -> ExtractionEvent | None:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        payload = line[len(DATA_PREFIX) :]
        if payload == SENTINEL:
            self.done = True
            return None
        try:
            return parse_event(payload)
        except ValidationError:
            logger.debug("Skipping malformed frame: %s", payload[:100])
            return None
