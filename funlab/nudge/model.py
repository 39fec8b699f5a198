# model.py
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel
from tzlocal import get_localzone


class PayloadBase(BaseModel):
    @classmethod
    def from_jsonstr(cls, payload_str: str) -> 'PayloadBase':
        return cls.model_validate_json(payload_str)

    def to_json(self):
        return self.model_dump_json()


def serialize(payload: Any) -> str:
    """JSON text for a frame's data line. Unserializable payloads raise."""
    if isinstance(payload, BaseModel):
        return payload.model_dump_json()
    return json.dumps(payload, separators=(',', ':'), ensure_ascii=False, allow_nan=False)


def to_sse(event_name: str, payload: Any, event_id: Optional[int] = None) -> str:
    """ Format a payload as a Server-Sent Event. """
    frame = f"event: {event_name}\ndata: {serialize(payload)}\n\n"
    if event_id is not None:
        frame = f"id: {event_id}\n{frame}"
    return frame


@dataclass(frozen=True)
class StoredFrame:
    id: int
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def local_created_at(self):
        """Convert created_at to the local timezone for display."""
        return self.created_at.astimezone(get_localzone())
