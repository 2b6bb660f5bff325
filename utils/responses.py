"""
API Response Utilities

Every DreamLift endpoint answers with the same JSON envelope:
{"success": bool, "data": ..., "message": str, "errors": [...]}.
"""
from typing import Any, Optional, List

from pydantic import BaseModel, ValidationError, field_validator


class APIResponse(BaseModel):
    """Standard API response format"""
    success: bool = False
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[List[str]] = None

    @field_validator("errors", mode="before")
    @classmethod
    def _flatten_errors(cls, value):
        # express-validator sends either a list of strings, a list of
        # {msg: ...} objects, or a {field: [messages]} mapping
        if value is None:
            return None
        if isinstance(value, dict):
            flat = []
            for messages in value.values():
                if isinstance(messages, (list, tuple)):
                    flat.extend(str(m) for m in messages)
                else:
                    flat.append(str(messages))
            return flat
        if isinstance(value, (list, tuple)):
            return [str(e.get("msg", e)) if isinstance(e, dict) else str(e) for e in value]
        return [str(value)]


def parse_envelope(payload: Any) -> APIResponse:
    """Parse a decoded JSON body into an APIResponse.

    Bodies that are not envelopes (bare lists, legacy top-level fields) are
    wrapped as successful responses carrying the whole payload as `data`.
    """
    if isinstance(payload, dict) and "success" in payload:
        return APIResponse.model_validate(payload)
    return APIResponse(success=True, data=payload)


def error_message(payload: Any, default: str = "An error occurred.", prefer_errors: bool = False) -> str:
    """Best user-facing message from an error body"""
    if not isinstance(payload, dict):
        return default
    try:
        envelope = APIResponse.model_validate({"success": False, **payload})
    except ValidationError:
        return default
    if prefer_errors and envelope.errors:
        return ", ".join(envelope.errors)
    return envelope.message or default
