"""
User Model - Typed representation of user data
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Dict, Any

from ._parse import parse_datetime, entity_id

USER_ROLES = ('user', 'creator', 'admin')


@dataclass
class User:
    """Represents a registered DreamLift user"""
    id: str
    name: str
    email: str
    role: str = 'user'  # 'user', 'creator', 'admin'
    is_active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> 'User':
        """Create User from an API document"""
        return cls(
            id=entity_id(row),
            name=row.get('name') or '',
            email=row.get('email') or '',
            role=row.get('role') or 'user',
            is_active=row.get('isActive', True) is not False,
            created_at=parse_datetime(row.get('createdAt')),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def with_role(self, role: str) -> 'User':
        return replace(self, role=role)

    def with_active(self, is_active: bool) -> 'User':
        return replace(self, is_active=is_active)

    def matches(self, term: str) -> bool:
        term = term.strip().lower()
        if not term:
            return True
        return term in self.name.lower() or term in self.email.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
