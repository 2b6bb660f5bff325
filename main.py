"""
DreamLift Admin Client - Main Entry Point
Features: cached admin dashboard, campaign moderation, user management,
financial reports, live notifications
"""
import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

import config
from admin import AdminPanel
from core import AuthSession, EventBus
from notifications import LiveChannel, NotificationCenter
from payments import DonationService
from utils.api import APIError, DreamLiftClient

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class Application:
    """Everything one CLI run needs, wired explicitly and torn down together."""

    def __init__(self, base_url: str = None, token: str = None):
        self.bus = EventBus()
        self.client = DreamLiftClient(base_url=base_url, event_bus=self.bus)
        self.session = AuthSession(self.client, self.bus, token=token or config.API_TOKEN)
        self.panel = AdminPanel(self.client, self.session, self.bus)
        self.notifications = NotificationCenter(self.client, self.session, self.bus)
        self.live = LiveChannel(self.client, self.session, self.notifications, self.bus)
        self.donations = DonationService(self.client, self.bus)

        self.reported_errors: List[str] = []
        self.bus.subscribe("admin.error", self._print_error)
        self.bus.subscribe("admin.success", _print_success)
        self.bus.subscribe("notification.new", _print_notification)

    async def on_startup(self):
        errors = config.validate_config()
        if errors:
            logger.error(f"Config Validation Error: {errors}")

        await self.client.start()
        user = await self.session.restore()
        if user is None and config.ADMIN_EMAIL and config.ADMIN_PASSWORD:
            user = await self.session.login(config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
        if user is None:
            raise APIError("Not signed in. Set DREAMLIFT_API_TOKEN or ADMIN_EMAIL/ADMIN_PASSWORD.")
        self.session.require_admin()
        logger.info("Admin client started")

    async def on_shutdown(self):
        await self.live.stop()
        await self.client.close()
        logger.info("Admin client stopped")

    async def _print_error(self, data):
        self.reported_errors.append(data.get("message"))
        print(f"✖ {data.get('message')}", file=sys.stderr)


async def _print_success(data):
    print(f"✔ {data.get('message')}")


async def _print_notification(data):
    print(f"🔔 {data.get('message')}")


# === Commands ===

async def cmd_dashboard(app: Application, args):
    result = await app.panel.load(force=args.force)
    a = app.panel.store.analytics
    source = "cache" if result.from_cache else "server"
    print(f"Dashboard ({source})")
    print(f"  Campaigns:  {a.total_campaigns} total, {a.active_campaigns} active, {a.pending_approvals} pending")
    print(f"  Users:      {a.total_users}")
    print(f"  Donations:  {a.total_donations} ({a.total_revenue:,.2f} raised)")
    for name, message in result.failed.items():
        print(f"  ! {name} not refreshed: {message}")


async def cmd_campaigns(app: Application, args):
    await app.panel.load()
    campaigns = app.panel.store.pending_campaigns if args.pending else \
        app.panel.store.filtered_campaigns(args.status, args.search or "")
    for c in campaigns:
        creator = f" by {c.creator_name}" if c.creator_name else ""
        print(f"{c.id}  [{c.status:<9}] {c.title}{creator}  {c.current_amount:,.0f}/{c.goal_amount:,.0f}")
    print(f"{len(campaigns)} campaign(s)")


async def cmd_users(app: Application, args):
    await app.panel.load()
    users = app.panel.store.filtered_users(args.search or "")
    for u in users:
        state = "active" if u.is_active else "inactive"
        print(f"{u.id}  {u.name:<24} {u.email:<32} {u.role:<8} {state}")
    print(f"{len(users)} user(s)")


async def cmd_approve(app: Application, args):
    await app.panel.load()
    await app.panel.approve_campaign(args.campaign_id, args.notes)


async def cmd_reject(app: Application, args):
    await app.panel.load()
    await app.panel.reject_campaign(args.campaign_id, args.notes)


async def cmd_delete(app: Application, args):
    await app.panel.load()
    await app.panel.delete_campaign(args.campaign_id)


async def cmd_role(app: Application, args):
    await app.panel.load()
    await app.panel.update_user_role(args.user_id, args.role)


async def cmd_status(app: Application, args):
    await app.panel.load()
    if args.active is None:
        await app.panel.toggle_user_status(args.user_id)
    else:
        await app.panel.set_user_status(args.user_id, args.active)


async def cmd_report(app: Application, args):
    path = await app.panel.generate_financial_report(args.period, args.out)
    print(path)


async def cmd_notifications(app: Application, args):
    if args.mark_all:
        await app.notifications.mark_all_read()
    await app.notifications.refresh()
    for n in app.notifications.notifications:
        print(f"{'  ' if n.read else '• '}{n.id}  {n.message}")
    print(f"{app.notifications.unread_count} unread")


async def cmd_watch(app: Application, args):
    await app.notifications.refresh_unread_count()
    print(f"{app.notifications.unread_count} unread, watching for live updates (Ctrl+C to stop)")
    if not await app.live.start():
        return
    for campaign_id in args.campaign or []:
        app.bus.subscribe("socket.connected", _joiner(app.live, campaign_id))
    await app.live.wait()


async def cmd_donations(app: Application, args):
    if args.campaign:
        donations = await app.donations.campaign_donations(args.campaign)
    else:
        mine = await app.donations.my_donations()
        donations = mine["made"] + mine["received"]
    for d in donations:
        donor = d.get("donor")
        if d.get("isAnonymous"):
            donor = "anonymous"
        elif isinstance(donor, dict):
            donor = donor.get("name") or "-"
        print(f"{d.get('_id', '-')}  {float(d.get('amount') or 0):>10,.2f}  {donor or '-'}  {d.get('status', '')}")
    print(f"{len(donations)} donation(s)")


async def cmd_donate(app: Application, args):
    intent = await app.donations.create_payment_intent(args.amount, args.campaign_id, args.anonymous, args.email)
    print(f"Payment intent {intent.payment_intent_id} for {intent.amount:,.2f}")
    print(f"Client secret: {intent.client_secret}")


def _joiner(live: LiveChannel, campaign_id: str):
    async def join(data):
        await live.join_campaign(campaign_id)
    return join


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dreamlift-admin", description="DreamLift administration client")
    parser.add_argument("--api-url", default=None, help="API base URL (default: DREAMLIFT_API_URL)")
    parser.add_argument("--token", default=None, help="Bearer token (default: DREAMLIFT_API_TOKEN)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("dashboard", help="Show dashboard analytics")
    p.add_argument("--force", action="store_true", help="Bypass the cache")
    p.set_defaults(handler=cmd_dashboard)

    p = sub.add_parser("campaigns", help="List campaigns")
    p.add_argument("--status", default="all")
    p.add_argument("--search")
    p.add_argument("--pending", action="store_true", help="Only campaigns awaiting review")
    p.set_defaults(handler=cmd_campaigns)

    p = sub.add_parser("users", help="List users")
    p.add_argument("--search")
    p.set_defaults(handler=cmd_users)

    for name, handler in (("approve", cmd_approve), ("reject", cmd_reject)):
        p = sub.add_parser(name, help=f"{name.capitalize()} a pending campaign")
        p.add_argument("campaign_id")
        p.add_argument("--notes", required=True, help="Review notes")
        p.set_defaults(handler=handler)

    p = sub.add_parser("delete", help="Delete a campaign")
    p.add_argument("campaign_id")
    p.set_defaults(handler=cmd_delete)

    p = sub.add_parser("role", help="Change a user's role")
    p.add_argument("user_id")
    p.add_argument("role", choices=["user", "creator", "admin"])
    p.set_defaults(handler=cmd_role)

    p = sub.add_parser("status", help="Activate, deactivate or toggle a user")
    p.add_argument("user_id")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--active", dest="active", action="store_true", default=None)
    group.add_argument("--inactive", dest="active", action="store_false")
    p.set_defaults(handler=cmd_status)

    p = sub.add_parser("report", help="Download the financial report PDF")
    p.add_argument("--period", default="monthly", choices=["weekly", "monthly", "yearly"])
    p.add_argument("--out", default=None, help="Output directory (default: REPORTS_DIR)")
    p.set_defaults(handler=cmd_report)

    p = sub.add_parser("notifications", help="List notifications")
    p.add_argument("--mark-all", action="store_true", help="Mark all as read first")
    p.set_defaults(handler=cmd_notifications)

    p = sub.add_parser("watch", help="Follow live notifications")
    p.add_argument("--campaign", action="append", help="Also follow a campaign's donations")
    p.set_defaults(handler=cmd_watch)

    p = sub.add_parser("donations", help="List donations")
    p.add_argument("--campaign", help="Donations to one campaign (default: your own)")
    p.set_defaults(handler=cmd_donations)

    p = sub.add_parser("donate", help="Create a Stripe payment intent for a donation")
    p.add_argument("campaign_id")
    p.add_argument("amount", type=float)
    p.add_argument("--anonymous", action="store_true")
    p.add_argument("--email", help="Receipt email for anonymous donations")
    p.set_defaults(handler=cmd_donate)

    return parser


async def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    app = Application(base_url=args.api_url, token=args.token)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(app.live.stop()))

    try:
        await app.on_startup()
        await args.handler(app, args)
        return 0
    except APIError as e:
        logger.debug(f"Command failed: {e.message}")
        if not app.reported_errors:
            print(f"✖ {e.message}", file=sys.stderr)
        return 1
    finally:
        await app.on_shutdown()


def main():
    try:
        exit_code = asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
