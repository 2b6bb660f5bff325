"""
Campaign Model - Typed representation of campaign data
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Dict, Any, List

from ._parse import parse_datetime, entity_id, as_number

CAMPAIGN_STATUSES = ('pending', 'active', 'rejected', 'completed')


@dataclass
class Campaign:
    """Represents a fundraising campaign as seen by the admin panel"""
    id: str
    title: str
    description: str = ''
    goal_amount: float = 0.0
    current_amount: float = 0.0
    status: str = 'pending'  # 'pending', 'active', 'rejected', 'completed' (+ server-only 'draft', 'paused', 'cancelled')
    creator_id: Optional[str] = None
    creator_name: Optional[str] = None
    created_at: Optional[datetime] = None
    location: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    review_notes: Optional[str] = None

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> 'Campaign':
        """Create Campaign from an API document"""
        creator = row.get('creator')
        if isinstance(creator, dict):
            creator_id, creator_name = entity_id(creator) or None, creator.get('name')
        else:
            creator_id, creator_name = (str(creator) if creator else None), None

        moderation = row.get('moderation') if isinstance(row.get('moderation'), dict) else {}

        return cls(
            id=entity_id(row),
            title=row.get('title') or '',
            description=row.get('description') or '',
            goal_amount=as_number(row.get('targetAmount', row.get('goalAmount'))),
            current_amount=as_number(row.get('currentAmount')),
            status=row.get('status') or 'pending',
            creator_id=creator_id,
            creator_name=creator_name,
            created_at=parse_datetime(row.get('createdAt')),
            location=_format_location(row.get('location')),
            tags=list(row.get('tags') or []),
            review_notes=moderation.get('reviewNotes'),
        )

    def with_status(self, status: str) -> 'Campaign':
        return replace(self, status=status)

    def matches(self, term: str) -> bool:
        """Case-insensitive search over title, description and creator name"""
        term = term.strip().lower()
        if not term:
            return True
        return any(
            term in (value or '').lower()
            for value in (self.title, self.description, self.creator_name)
        )

    @property
    def progress(self) -> float:
        if not self.goal_amount:
            return 0.0
        return min(100.0, self.current_amount / self.goal_amount * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'goal_amount': self.goal_amount,
            'current_amount': self.current_amount,
            'status': self.status,
            'creator_id': self.creator_id,
            'creator_name': self.creator_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'location': self.location,
            'tags': list(self.tags),
            'review_notes': self.review_notes,
        }


def _format_location(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        parts = [value.get(k) for k in ('city', 'state', 'country')]
        return ', '.join(p for p in parts if p) or None
    return value or None
