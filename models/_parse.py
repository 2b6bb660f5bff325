"""Shared field parsing for API payloads"""
from datetime import datetime
from typing import Any, Optional


def parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        # fromisoformat() rejects the trailing Z that JS toISOString() emits
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def entity_id(row: dict) -> str:
    """Server documents carry `_id`; already-normalized rows carry `id`."""
    return str(row.get('_id') or row.get('id') or '')


def as_number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0
