"""The ``{success, data, message}`` wrapper every backend response uses."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from salo.errors import EnvelopeError

T = TypeVar("T")

GENERIC_FAILURE = "Request failed"


class Envelope(BaseModel, Generic[T]):
    model_config = ConfigDict(extra="ignore")

    success: bool
    data: T | None = None
    message: str | None = None


def unwrap_envelope(payload: Any, data_type: Any, fallback: str = GENERIC_FAILURE) -> Any:
    """Validate ``payload`` as ``Envelope[data_type]`` and return ``data``.

    Raises EnvelopeError if the shape does not match or ``success`` is false.
    """
    try:
        envelope = TypeAdapter(Envelope[data_type]).validate_python(payload)
    except ValidationError as e:
        raise EnvelopeError(
            f"Unexpected response shape: {e.error_count()} validation error(s)",
            payload=payload,
        ) from e

    if not envelope.success:
        raise EnvelopeError(envelope.message or fallback, payload=payload)
    if envelope.data is None:
        raise EnvelopeError(envelope.message or "Response has no data", payload=payload)
    return envelope.data
