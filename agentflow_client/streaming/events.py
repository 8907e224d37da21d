"""Stream event types for graph streaming responses.

StreamChunk is the typed form of one decoded server frame. It is what the
streaming loop yields to callers, one per frame, in arrival order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from agentflow_client.messages import Message

logger = logging.getLogger(__name__)


class StreamEventType(str, Enum):
    """Event discriminators the server is known to send."""

    MESSAGE = "message"
    UPDATES = "updates"
    STATE = "state"
    ERROR = "error"


# Used for frames that carry no event tag (or are not JSON objects at all)
OTHER_EVENT = "other"


class StreamChunk(BaseModel):
    """One decoded server event.

    Attributes:
        event: Event kind (a StreamEventType value, or any other string
            the server sends)
        message: Message produced by the graph, if any
        state: Agent state snapshot (opaque)
        data: Free-form payload
        thread_id: Thread the run belongs to
        run_id: Run identifier
        metadata: Response metadata (e.g. ``is_new_thread``)
        timestamp: Server timestamp
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    event: StreamEventType | str = OTHER_EVENT
    message: Message | None = None
    state: Any = None
    data: Any = None
    thread_id: str | int | None = None
    run_id: str | int | None = None
    metadata: dict[str, Any] | None = None
    timestamp: float | str | None = None

    @classmethod
    def from_frame(cls, frame: Any) -> StreamChunk:
        """Build a chunk from one parsed JSON value.

        The embedded message is validated on its own, so a malformed
        envelope field never costs the consumer the message. Frames that
        are not objects are kept as ``event="other"`` with the raw value in
        ``data``. Envelopes that do not validate keep their raw fields in
        ``data`` as well.
        """
        if not isinstance(frame, dict):
            return cls(event=OTHER_EVENT, data=frame)

        raw_event = frame.get("event")
        event: StreamEventType | str = OTHER_EVENT
        if isinstance(raw_event, str):
            try:
                event = StreamEventType(raw_event)
            except ValueError:
                event = raw_event

        envelope = {key: value for key, value in frame.items() if key not in ("event", "message")}
        message = None
        if frame.get("message") is not None:
            try:
                message = Message.model_validate(frame["message"])
            except PydanticValidationError as exc:
                logger.warning("Dropping malformed message in %s frame: %s", event, _first_error(exc))
                return cls(event=event, data=frame)

        try:
            return cls.model_validate({**envelope, "event": event, "message": message})
        except PydanticValidationError as exc:
            logger.warning("Stream frame did not match the expected shape (event=%s): %s", event, _first_error(exc))
            return cls(event=event, message=message, data=frame)


def _first_error(exc: PydanticValidationError) -> Any:
    errors = exc.errors()
    return errors[0].get("msg") if errors else exc
