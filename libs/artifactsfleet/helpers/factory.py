"""Factory functions for creating and parsing bus records."""

import json
from typing import Any

from pydantic import BaseModel

from artifactsfleet.models.envelope import Envelope, RecordType


def create_record(
    *,
    from_agent: str,
    topic: str,
    record_type: RecordType,
    payload: BaseModel | dict[str, Any],
) -> Envelope:
    """Create an Envelope with a typed or dict payload.

    Args:
        from_agent: The character name publishing this record.
        topic: The topic path (e.g., `/fleet/decisions/alice`).
        record_type: The record type.
        payload: A Pydantic model instance or a plain dict.
    """
    if isinstance(payload, BaseModel):
        payload_dict = payload.model_dump()
    else:
        payload_dict = payload

    return Envelope(
        **{"from": from_agent},
        topic=topic,
        type=record_type,
        payload=payload_dict,
    )


def parse_record(data: str | bytes | dict[str, Any]) -> Envelope:
    """Parse raw JSON text, bytes or a dict into an Envelope.

    Raises:
        ValueError: If the data is not valid JSON.
        ValidationError: If the data doesn't match the Envelope schema.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    if isinstance(data, str):
        data = json.loads(data)
    return Envelope.model_validate(data)
