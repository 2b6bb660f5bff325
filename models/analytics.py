"""
Analytics Model - Aggregate counters shown on the admin dashboard
"""
from dataclasses import dataclass, asdict, replace
from typing import Dict, Any

from ._parse import as_number


@dataclass(frozen=True)
class AnalyticsSnapshot:
    total_campaigns: int = 0
    total_users: int = 0
    total_donations: int = 0
    total_revenue: float = 0.0
    pending_approvals: int = 0
    active_campaigns: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'AnalyticsSnapshot':
        """Build from the analytics payload; counters live under `overview`"""
        overview = (data or {}).get('overview') or {}
        return cls(
            total_campaigns=int(overview.get('totalCampaigns') or 0),
            total_users=int(overview.get('totalUsers') or 0),
            total_donations=int(overview.get('totalDonations') or 0),
            total_revenue=as_number(overview.get('totalRevenue')),
            pending_approvals=int(overview.get('pendingCampaigns') or 0),
            active_campaigns=int(overview.get('activeCampaigns') or 0),
        )

    def adjust(self, **deltas: int) -> 'AnalyticsSnapshot':
        """Return a copy with counters shifted by `deltas`, never below zero"""
        changes = {}
        for name, delta in deltas.items():
            changes[name] = max(0, getattr(self, name) + delta)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
