"""
Notification Model
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Dict, Any

from ._parse import parse_datetime, entity_id


@dataclass
class Notification:
    id: str
    message: str
    type: str = 'general'
    title: Optional[str] = None
    read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> 'Notification':
        return cls(
            id=entity_id(row),
            message=row.get('message') or '',
            type=row.get('type') or 'general',
            title=row.get('title'),
            read=bool(row.get('isRead', row.get('read', False))),
            read_at=parse_datetime(row.get('readAt')),
            created_at=parse_datetime(row.get('createdAt')),
        )

    def mark_read(self, at: datetime) -> 'Notification':
        return replace(self, read=True, read_at=at)
