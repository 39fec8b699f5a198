# config.py
import copy
from collections.abc import Mapping
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError


class ConfigurationError(ValueError):
    """Raised when the event spec mapping has the wrong shape."""


class Config:
    # Mapping of source event name -> True or EventSpec fields
    NUDGE_EVENTS: dict = {}

    # Blueprint settings
    NUDGE_URL_PREFIX = '/nudge'

    # Connection settings
    NUDGE_HEARTBEAT_INTERVAL = None  # seconds, None disables keepalive comments

    @classmethod
    def defaults(cls) -> dict[str, Any]:
        return {key: copy.copy(getattr(cls, key)) for key in dir(cls) if key.startswith('NUDGE_')}


class EventSpec(BaseModel):
    """How one source event is turned into SSE frames.

    name: SSE event name, defaults to the source event name.
    pre_processor: called with every argument of the source event, returns the
        payload to send or None to drop the occurrence.
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    name: Optional[str] = None
    pre_processor: Optional[Callable[..., Any]] = None

    @classmethod
    def from_config(cls, value: Any, source_event_name: str = '') -> 'EventSpec':
        if value is True:
            return cls()
        if isinstance(value, EventSpec):
            return value
        if not isinstance(value, Mapping) or not value:
            raise ConfigurationError(
                f"Spec for event '{source_event_name}' must be True or a non-empty mapping, got {value!r}")
        try:
            return cls.model_validate(dict(value))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid spec for event '{source_event_name}': {e}") from e


def check_validity(event_specs: Any) -> dict[str, EventSpec]:
    """Validate the event spec mapping and return it with every value as an EventSpec."""
    if not isinstance(event_specs, Mapping):
        raise ConfigurationError(f"Event specs must be a mapping, got {type(event_specs).__name__}")
    specs: dict[str, EventSpec] = {}
    for event_name, value in event_specs.items():
        if not isinstance(event_name, str):
            raise ConfigurationError(f"Event name must be a string, got {event_name!r}")
        specs[event_name] = EventSpec.from_config(value, event_name)
    return specs
