"""Pydantic models for loosely validating caller events before they are queued."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

from .errors import ValidationError
from .events import TRACK, dumps

MAX_MESSAGE_BYTES = 32 * 1024


class TrackMessage(BaseModel):
    """Shape a track event must have; unknown fields are carried through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event: StrictStr = Field(..., min_length=1, description="Name of the tracked action")
    user_id: Any = Field(None, alias="userId", description="Known user identifier")
    anonymous_id: Any = Field(None, alias="anonymousId", description="Anonymous visitor identifier")
    properties: Optional[Dict[str, Any]] = Field(None, description="Free-form event properties")
    context: Optional[Dict[str, Any]] = Field(None, description="Caller context merged over the library context")
    metadata: Optional[Dict[str, Any]] = Field(None, alias="_metadata", description="Caller metadata merged over the runtime tag")
    timestamp: Optional[datetime] = Field(None, description="When the event happened")
    message_id: Optional[StrictStr] = Field(None, alias="messageId", description="Caller supplied unique id")

    @model_validator(mode="after")
    def require_identity(self) -> "TrackMessage":
        if not self.user_id and not self.anonymous_id:
            raise ValueError('You must pass either an "anonymousId" or a "userId".')
        return self


_MODELS = {
    TRACK: TrackMessage,
}


def validate_message(message: Any, type_: str = TRACK) -> None:
    """Check that ``message`` is a well-formed event of type ``type_``.

    Args:
        message: Raw caller event
        type_: Event type to validate against

    Raises:
        ValidationError: If the event does not have the expected shape
    """
    if not isinstance(message, Mapping):
        raise ValidationError(f"You must pass a message object, got {type(message).__name__}.")

    model = _MODELS.get(type_)
    if model is None:
        raise ValidationError(f"Unsupported message type: {type_!r}", field="type")

    try:
        model.model_validate(dict(message))
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        detail = first.get("msg", "invalid value")
        raise ValidationError(f"Invalid {type_} message: {field + ': ' if field else ''}{detail}", field=field) from exc

    size = len(dumps(message).encode("utf-8"))
    if size > MAX_MESSAGE_BYTES:
        raise ValidationError(f"Your message must be < 32kb, got {size} bytes.")
