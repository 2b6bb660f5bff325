"""
Admin store

Single in-memory source of truth for what the admin panel shows. Mutations
that the server has accepted are applied here by id, with fixed analytics
deltas, so the acting admin sees the result without a list refetch.

Each mutation carries a marker: PENDING while the request is in flight,
UNCONFIRMED once applied locally, and dropped when an authoritative fetch
replaces the slice it touched.
"""
import enum
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from models import AnalyticsSnapshot, Campaign, User

logger = logging.getLogger(__name__)


class MutationKind(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"
    ROLE = "role"
    STATUS = "status"


class MarkerState(str, enum.Enum):
    PENDING = "pending"
    UNCONFIRMED = "unconfirmed"


CAMPAIGN_MUTATIONS = (MutationKind.APPROVE, MutationKind.REJECT, MutationKind.DELETE)
USER_MUTATIONS = (MutationKind.ROLE, MutationKind.STATUS)

MarkerKey = Tuple[MutationKind, str]


class AdminStore:
    def __init__(self):
        self.pending_campaigns: List[Campaign] = []
        self.all_campaigns: List[Campaign] = []
        self.users: List[User] = []
        self.analytics = AnalyticsSnapshot()
        self.markers: Dict[MarkerKey, MarkerState] = {}

    # === Lookups ===

    def find_campaign(self, campaign_id: str) -> Optional[Campaign]:
        for campaign in self.all_campaigns + self.pending_campaigns:
            if campaign.id == campaign_id:
                return campaign
        return None

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def filtered_campaigns(self, status: str = "all", search: str = "") -> List[Campaign]:
        campaigns = self.all_campaigns
        if status and status != "all":
            campaigns = [c for c in campaigns if c.status == status]
        if search and search.strip():
            campaigns = [c for c in campaigns if c.matches(search)]
        return campaigns

    def filtered_users(self, search: str = "") -> List[User]:
        if not search or not search.strip():
            return self.users
        return [u for u in self.users if u.matches(search)]

    # === Authoritative replacement ===

    def replace_campaigns(self, pending: Iterable[Campaign], all_campaigns: Iterable[Campaign]):
        self.pending_campaigns = list(pending)
        self.all_campaigns = list(all_campaigns)
        self._drop_unconfirmed(CAMPAIGN_MUTATIONS)

    def replace_users(self, users: Iterable[User]):
        self.users = list(users)
        self._drop_unconfirmed(USER_MUTATIONS)

    def replace_analytics(self, analytics: AnalyticsSnapshot):
        self.analytics = analytics

    def load_snapshot(self, pending=None, all_campaigns=None, users=None, analytics=None):
        """Repopulate from cached copies. Not authoritative, markers are kept."""
        if pending is not None:
            self.pending_campaigns = list(pending)
        if all_campaigns is not None:
            self.all_campaigns = list(all_campaigns)
        if users is not None:
            self.users = list(users)
        if analytics is not None:
            self.analytics = analytics

    # === Mutation markers ===

    def mark_pending(self, kind: MutationKind, entity_id: str):
        self.markers[(kind, entity_id)] = MarkerState.PENDING

    def confirm(self, kind: MutationKind, entity_id: str):
        self.markers[(kind, entity_id)] = MarkerState.UNCONFIRMED

    def discard(self, kind: MutationKind, entity_id: str):
        self.markers.pop((kind, entity_id), None)

    def is_pending(self, kind: MutationKind, entity_id: str) -> bool:
        return self.markers.get((kind, entity_id)) == MarkerState.PENDING

    def unconfirmed(self) -> List[MarkerKey]:
        return [key for key, state in self.markers.items() if state == MarkerState.UNCONFIRMED]

    def _drop_unconfirmed(self, kinds):
        # In-flight (PENDING) markers survive: their outcome is not in this fetch yet
        for key in [k for k, state in self.markers.items() if state == MarkerState.UNCONFIRMED and k[0] in kinds]:
            del self.markers[key]

    # === Local mutation applier ===

    def apply_approve(self, campaign_id: str, updated: Optional[Campaign] = None):
        current = updated or self.find_campaign(campaign_id)
        approved = current.with_status("active") if current else None
        self._remove_pending(campaign_id)
        if approved:
            self._upsert_campaign(approved)
        self.analytics = self.analytics.adjust(pending_approvals=-1, active_campaigns=1)
        self.confirm(MutationKind.APPROVE, campaign_id)

    def apply_reject(self, campaign_id: str, updated: Optional[Campaign] = None):
        current = updated or self.find_campaign(campaign_id)
        rejected = current.with_status("rejected") if current else None
        self._remove_pending(campaign_id)
        if rejected:
            self._upsert_campaign(rejected)
        self.analytics = self.analytics.adjust(pending_approvals=-1)
        self.confirm(MutationKind.REJECT, campaign_id)

    def apply_delete(self, campaign_id: str):
        removed = self.find_campaign(campaign_id)
        self._remove_pending(campaign_id)
        self.all_campaigns = [c for c in self.all_campaigns if c.id != campaign_id]

        deltas = {"total_campaigns": -1}
        if removed and removed.status == "pending":
            deltas["pending_approvals"] = -1
        elif removed and removed.status == "active":
            deltas["active_campaigns"] = -1
        self.analytics = self.analytics.adjust(**deltas)
        self.confirm(MutationKind.DELETE, campaign_id)

    def apply_role(self, user_id: str, role: str):
        self.users = [u.with_role(role) if u.id == user_id else u for u in self.users]
        self.confirm(MutationKind.ROLE, user_id)

    def apply_status(self, user_id: str, is_active: bool):
        self.users = [u.with_active(is_active) if u.id == user_id else u for u in self.users]
        self.confirm(MutationKind.STATUS, user_id)

    def _remove_pending(self, campaign_id: str):
        self.pending_campaigns = [c for c in self.pending_campaigns if c.id != campaign_id]

    def _upsert_campaign(self, campaign: Campaign):
        for i, existing in enumerate(self.all_campaigns):
            if existing.id == campaign.id:
                self.all_campaigns[i] = campaign
                return
        self.all_campaigns.insert(0, campaign)
