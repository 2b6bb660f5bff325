"""
Admin data cache

Time-boxed copy of the dashboard data with an explicit state machine:

    STALE --begin_refresh--> REFRESHING --complete_refresh--> FRESH
    FRESH --ttl elapses / invalidate--> STALE

An invalidate() that lands while a refresh is in flight wins: the refresh
still stores its data but leaves the cache STALE, because the server may
already have moved past what it fetched.
"""
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models import AnalyticsSnapshot, Campaign, User

logger = logging.getLogger(__name__)

_UNSET = object()


class CacheState(enum.Enum):
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


@dataclass
class CampaignLists:
    pending: List[Campaign] = field(default_factory=list)
    all: List[Campaign] = field(default_factory=list)


@dataclass
class CacheRecord:
    last_fetch: Optional[float] = None
    campaigns: Optional[CampaignLists] = None
    users: Optional[List[User]] = None
    analytics: Optional[AnalyticsSnapshot] = None


class AdminCache:
    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self.record = CacheRecord()
        self._refreshing = False
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> CacheState:
        if self._refreshing:
            return CacheState.REFRESHING
        return CacheState.FRESH if self.is_fresh() else CacheState.STALE

    def is_fresh(self) -> bool:
        """True while the last fetch is inside the freshness window."""
        last = self.record.last_fetch
        return last is not None and (self.clock() - last) < self.ttl

    def begin_refresh(self) -> Optional[int]:
        """Enter REFRESHING. Returns the generation token, or None if a refresh is already running."""
        if self._refreshing:
            return None
        self._refreshing = True
        return self._generation

    def complete_refresh(self, generation: int, campaigns=_UNSET, users=_UNSET, analytics=_UNSET) -> CacheState:
        """Store the slices that were fetched and leave REFRESHING.

        Slices not passed keep their previous cached value.
        """
        self._refreshing = False
        if campaigns is not _UNSET:
            self.record.campaigns = campaigns
        if users is not _UNSET:
            self.record.users = users
        if analytics is not _UNSET:
            self.record.analytics = analytics

        if generation != self._generation:
            logger.debug("Cache invalidated during refresh, staying stale")
            self.record.last_fetch = None
        else:
            self.record.last_fetch = self.clock()
        return self.state

    def abort_refresh(self):
        """Leave REFRESHING without touching data or timestamp."""
        self._refreshing = False

    def invalidate(self):
        """Force the next load to go to the network."""
        self.record.last_fetch = None
        self._generation += 1
