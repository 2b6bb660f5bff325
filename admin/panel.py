"""
Admin Panel - dashboard loading and moderation actions

Loads campaigns, users and analytics in parallel behind a time-boxed cache,
and applies approve/reject/delete/role/status results locally once the
server accepts them.
"""
import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiofiles

import config
from admin.cache import AdminCache, CampaignLists
from admin.store import AdminStore, MutationKind
from models import AnalyticsSnapshot, Campaign, User
from models.user import USER_ROLES
from utils.api import APIError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

REPORT_PERIODS = ("weekly", "monthly", "yearly")
REVIEW_NOTES_MAX = 500
REJECTION_NOTES_MIN = 10


@dataclass
class LoadResult:
    from_cache: bool = False
    joined: bool = False  # awaited a refresh another caller started
    loaded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.from_cache or bool(self.loaded)


class AdminPanel:
    SLICES = ("campaigns", "users", "analytics")

    def __init__(
        self,
        client,
        session=None,
        event_bus=None,
        store: AdminStore = None,
        cache: AdminCache = None,
    ):
        self.client = client
        self.session = session
        self.event_bus = event_bus
        self.store = store or AdminStore()
        self.cache = cache or AdminCache(ttl=config.ADMIN_CACHE_TTL)
        self.loading = False
        self.report_in_progress = False
        self._actions_in_flight = 0
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def action_in_progress(self) -> bool:
        return self._actions_in_flight > 0

    def _check_admin(self):
        if self.session is not None:
            self.session.require_admin()

    # === Fetch orchestration ===

    async def load(self, force: bool = False) -> LoadResult:
        """Populate the store, from cache when fresh, otherwise from the API."""
        self._check_admin()

        if self._refresh_task is not None and not self._refresh_task.done():
            logger.debug("Refresh already in flight, joining it")
            result = await asyncio.shield(self._refresh_task)
            return replace(result, joined=True)

        if not force and self.cache.is_fresh():
            self._restore_from_cache()
            return LoadResult(from_cache=True)

        generation = self.cache.begin_refresh()
        self._refresh_task = asyncio.create_task(self._refresh(generation))
        return await asyncio.shield(self._refresh_task)

    def _restore_from_cache(self):
        record = self.cache.record
        self.store.load_snapshot(
            pending=record.campaigns.pending if record.campaigns else None,
            all_campaigns=record.campaigns.all if record.campaigns else None,
            users=record.users,
            analytics=record.analytics,
        )

    async def _refresh(self, generation: int) -> LoadResult:
        self.loading = True
        try:
            outcomes = await asyncio.gather(
                self._fetch_campaigns(),
                self._fetch_users(),
                self._fetch_analytics(),
                return_exceptions=True,
            )
        except BaseException:
            self.cache.abort_refresh()
            raise
        finally:
            self.loading = False

        result = LoadResult()
        fetched: Dict[str, Any] = {}
        for name, outcome in zip(self.SLICES, outcomes):
            if isinstance(outcome, BaseException):
                result.failed[name] = getattr(outcome, "message", None) or str(outcome) or type(outcome).__name__
            else:
                fetched[name] = outcome
                result.loaded.append(name)

        if "campaigns" in fetched:
            self.store.replace_campaigns(fetched["campaigns"].pending, fetched["campaigns"].all)
        if "users" in fetched:
            self.store.replace_users(fetched["users"])
        if "analytics" in fetched:
            self.store.replace_analytics(fetched["analytics"])

        if result.failed:
            logger.warning(f"Admin data partially loaded, failed slices: {result.failed}")

        if not fetched:
            self.cache.abort_refresh()
            logger.error("Error fetching admin data: every request failed")
            await self._emit("admin.error", {"message": "Failed to load admin data"})
            return result

        state = self.cache.complete_refresh(generation, **fetched)
        logger.info(f"Admin data refreshed ({', '.join(result.loaded)}), cache {state.value}")
        await self._emit("admin.refreshed", {"loaded": result.loaded, "failed": list(result.failed)})
        return result

    async def _fetch_campaigns(self) -> CampaignLists:
        pending_data, all_data = await asyncio.gather(
            self.client.get_pending_campaigns(),
            self.client.get_all_campaigns(),
        )
        return CampaignLists(
            pending=[Campaign.from_api(c) for c in (pending_data or {}).get("campaigns") or []],
            all=[Campaign.from_api(c) for c in (all_data or {}).get("campaigns") or []],
        )

    async def _fetch_users(self) -> List[User]:
        data = await self.client.get_users()
        return [User.from_api(u) for u in (data or {}).get("users") or []]

    async def _fetch_analytics(self) -> AnalyticsSnapshot:
        return AnalyticsSnapshot.from_api(await self.client.get_analytics())

    # === Campaign moderation ===

    async def approve_campaign(self, campaign_id: str, review_notes: str) -> Optional[Campaign]:
        notes = _review_notes(review_notes, "Please provide review notes")

        def apply(data):
            updated = _campaign_from(data)
            self.store.apply_approve(campaign_id, updated)
            return updated

        return await self._mutate(
            MutationKind.APPROVE, campaign_id,
            lambda: self.client.approve_campaign(campaign_id, notes), apply,
            success="Campaign approved successfully!", failure="Failed to approve campaign",
        )

    async def reject_campaign(self, campaign_id: str, review_notes: str) -> Optional[Campaign]:
        notes = _review_notes(review_notes, "Please provide review notes for rejection", REJECTION_NOTES_MIN)

        def apply(data):
            updated = _campaign_from(data)
            self.store.apply_reject(campaign_id, updated)
            return updated

        return await self._mutate(
            MutationKind.REJECT, campaign_id,
            lambda: self.client.reject_campaign(campaign_id, notes), apply,
            success="Campaign rejected successfully!", failure="Failed to reject campaign",
        )

    async def delete_campaign(self, campaign_id: str):
        await self._mutate(
            MutationKind.DELETE, campaign_id,
            lambda: self.client.delete_campaign(campaign_id),
            lambda data: self.store.apply_delete(campaign_id),
            success="Campaign deleted successfully!", failure="Error deleting campaign. Please try again.",
        )

    # === User management ===

    async def update_user_role(self, user_id: str, role: str):
        if role not in USER_ROLES:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(USER_ROLES)}")
        await self._mutate(
            MutationKind.ROLE, user_id,
            lambda: self.client.update_user_role(user_id, role),
            lambda data: self.store.apply_role(user_id, role),
            success="User role updated successfully!", failure="Failed to update user role",
        )

    async def set_user_status(self, user_id: str, is_active: bool):
        await self._mutate(
            MutationKind.STATUS, user_id,
            lambda: self.client.update_user_status(user_id, is_active),
            lambda data: self.store.apply_status(user_id, is_active),
            success=f"User {'activated' if is_active else 'deactivated'} successfully!",
            failure="Failed to update user status",
        )

    async def toggle_user_status(self, user_id: str) -> bool:
        """Flip the active flag of a loaded user. Returns the new flag."""
        user = self.store.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} is not loaded", 404)
        await self.set_user_status(user_id, not user.is_active)
        return not user.is_active

    async def _mutate(
        self,
        kind: MutationKind,
        entity_id: str,
        call: Callable[[], Awaitable[Any]],
        apply: Callable[[Any], Any],
        success: str,
        failure: str,
    ):
        self._check_admin()
        self.store.mark_pending(kind, entity_id)
        self._actions_in_flight += 1
        try:
            data = await call()
        except APIError as e:
            self.store.discard(kind, entity_id)
            logger.error(f"Error during {kind.value} of {entity_id}: {e.message}")
            await self._emit("admin.error", {"message": f"{failure}: {e.message}", "action": kind.value, "id": entity_id})
            raise
        except Exception as e:
            self.store.discard(kind, entity_id)
            logger.error(f"Unexpected error during {kind.value} of {entity_id}: {e}", exc_info=True)
            await self._emit("admin.error", {"message": failure, "action": kind.value, "id": entity_id})
            raise
        finally:
            self._actions_in_flight -= 1

        # the server accepted the change, so the cache is stale even if the local apply fails
        try:
            outcome = apply(data if isinstance(data, dict) else {})
        except Exception as e:
            self.store.discard(kind, entity_id)
            logger.error(f"Could not apply {kind.value} of {entity_id} locally: {e}", exc_info=True)
            raise
        finally:
            self.cache.invalidate()
        logger.info(f"{kind.value} applied to {entity_id}")
        await self._emit("admin.success", {"message": success, "action": kind.value, "id": entity_id})
        return outcome

    # === Reports ===

    async def generate_financial_report(self, period: str = "monthly", out_dir: str = None) -> Path:
        """Download the financial report PDF and write it under `out_dir`."""
        self._check_admin()
        if period not in REPORT_PERIODS:
            raise ValidationError(f"Invalid period. Must be one of: {', '.join(REPORT_PERIODS)}")

        self.report_in_progress = True
        try:
            content = await self.client.get_financial_report(period)
        except APIError as e:
            logger.error(f"Error generating financial report: {e.message}")
            await self._emit("admin.error", {"message": "Failed to generate financial report. Please try again."})
            raise
        finally:
            self.report_in_progress = False

        directory = Path(out_dir or config.REPORTS_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"financial-report-{period}-{config.get_now():%Y-%m-%d}.pdf"
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.info(f"Financial report saved to {path} ({len(content)} bytes)")
        await self._emit("admin.success", {"message": f"{period.capitalize()} financial report PDF downloaded successfully!"})
        return path

    async def _emit(self, event_name: str, data: dict):
        if self.event_bus:
            await self.event_bus.emit(event_name, data)


def _review_notes(notes: Optional[str], message: str, min_length: int = 1) -> str:
    notes = (notes or "").strip()
    if not notes:
        raise ValidationError(message)
    if len(notes) < min_length:
        raise ValidationError(f"Review notes must be at least {min_length} characters")
    if len(notes) > REVIEW_NOTES_MAX:
        raise ValidationError(f"Review notes must not exceed {REVIEW_NOTES_MAX} characters")
    return notes


def _campaign_from(data: Dict[str, Any]) -> Optional[Campaign]:
    raw = data.get("campaign")
    return Campaign.from_api(raw) if isinstance(raw, dict) else None
