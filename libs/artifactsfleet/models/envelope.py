"""Envelope model — the wire format for records published on the fleet bus."""

import time
import uuid
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class RecordType(StrEnum):
    """All record types published on the bus."""

    DECISION = "decision"


class Envelope(BaseModel):
    """The standard envelope for fleet bus records.

    The `from_agent` field maps to `"from"` in JSON (Python reserved keyword).
    Always serialize with `model_dump(by_alias=True)` for wire format.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    from_agent: str = Field(alias="from")
    topic: str
    timestamp: float = Field(default_factory=time.time)
    type: RecordType
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}
