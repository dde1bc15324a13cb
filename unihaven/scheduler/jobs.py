from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unihaven.config import Settings, get_settings
from unihaven.models import Ad, Advertiser, User
from unihaven.models.base import utcnow
from unihaven.models.notification_log import NotificationType
from unihaven.notifications.dispatcher import NotificationDispatcher
from unihaven.notifications.email import EmailSender
from unihaven.notifications.formatter import (
    format_account_reinstated,
    format_ad_expired,
    format_ad_expiring,
)
from unihaven.scheduler.lifecycle import (
    AdAction,
    decide_ad_action,
    should_lift_suspension,
)


class ReconciliationBusy(Exception):
    """A pass was requested while another one is still running."""


@dataclass(frozen=True)
class AdRef:
    id: int
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title}


@dataclass(frozen=True)
class AdCandidate:
    """Fields of an ad read once at the start of a pass."""

    id: int
    title: str
    advertiser_id: int
    end_date: datetime
    action: AdAction

    @property
    def ref(self) -> AdRef:
        return AdRef(self.id, self.title)


@dataclass
class PassSummary:
    ran_at: datetime
    unsuspended: List[int] = field(default_factory=list)
    expired: List[AdRef] = field(default_factory=list)
    expiring_soon: List[AdRef] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ranAt": self.ran_at.isoformat(),
            "unsuspended": list(self.unsuspended),
            "expired": [ad.to_dict() for ad in self.expired],
            "expiringSoon": [ad.to_dict() for ad in self.expiring_soon],
        }


class Reconciler:
    """Periodic maintenance pass over users and ads.

    Holds no state between runs: every pass re-reads the work set from the
    database. All writes are predicate-guarded so a row that no longer matches
    is skipped instead of being changed twice.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sender: Optional[EmailSender] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings if settings is not None else get_settings()
        self.sender = sender if sender is not None else EmailSender(self.settings)
        self.reminder_window = timedelta(days=self.settings.ad_reminder_window_days)
        self.reminder_interval = timedelta(hours=self.settings.ad_reminder_interval_hours)
        self.timeout = self.settings.reconcile_timeout_seconds
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_pass(self, now: Optional[datetime] = None) -> PassSummary:
        """Run one reconciliation pass.

        Raises:
            ReconciliationBusy: another pass holds the lock.
            asyncio.TimeoutError: the pass exceeded the configured timeout.
        """
        if self._lock.locked():
            raise ReconciliationBusy("Reconciliation pass already running")

        async with self._lock:
            return await asyncio.wait_for(self._run(now or utcnow()), timeout=self.timeout)

    async def run_scheduled(self) -> Optional[PassSummary]:
        """Scheduler entry point: never raises."""
        try:
            return await self.run_pass()
        except ReconciliationBusy:
            logger.warning("Previous reconciliation pass still running, skipping this run")
        except asyncio.TimeoutError:
            logger.error(f"Reconciliation pass aborted after {self.timeout}s")
        except Exception as e:
            logger.exception(f"Reconciliation pass crashed: {e}")
        return None

    async def _run(self, now: datetime) -> PassSummary:
        logger.info(f"Reconciliation pass running @ {now.isoformat()}")
        summary = PassSummary(ran_at=now)

        async with self.session_factory() as session:
            dispatcher = NotificationDispatcher(session, self.sender, self.settings)

            try:
                await self._lift_suspensions(session, dispatcher, now, summary)
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"User unsuspension step failed: {e}")

            try:
                candidates = await self._load_ad_candidates(session, now)
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Loading ad candidates failed: {e}")
                candidates = []

            try:
                await self._expire_ads(
                    session,
                    dispatcher,
                    [ad for ad in candidates if ad.action is AdAction.expire],
                    now,
                    summary,
                )
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Ad expiry step failed: {e}")

            try:
                await self._remind_ads(
                    session,
                    dispatcher,
                    [ad for ad in candidates if ad.action is AdAction.remind],
                    now,
                    summary,
                )
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Ad reminder step failed: {e}")

        logger.info(
            f"Reconciliation pass complete: unsuspended={len(summary.unsuspended)}, "
            f"expired={len(summary.expired)}, reminders={len(summary.expiring_soon)}"
        )
        return summary

    async def _lift_suspensions(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher,
        now: datetime,
        summary: PassSummary,
    ) -> None:
        result = await session.execute(
            select(User).where(
                User.is_suspended.is_(True),
                User.suspended_until.is_not(None),
                User.suspended_until <= now,
            )
        )
        due = [
            (user.id, user.email, user.display_name)
            for user in result.scalars().all()
            if should_lift_suspension(user.is_suspended, user.suspended_until, now)
        ]
        if not due:
            logger.debug("No suspensions due to be lifted")
            return

        for user_id, email, name in due:
            outcome = await session.execute(
                update(User)
                .where(
                    User.id == user_id,
                    User.is_suspended.is_(True),
                    User.suspended_until.is_not(None),
                    User.suspended_until <= now,
                )
                .values(is_suspended=False, suspended_until=None, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            if outcome.rowcount == 0:
                # Deleted or lifted by someone else since the read
                continue

            logger.info(f"Unsuspended user {name} (id: {user_id})")
            summary.unsuspended.append(user_id)
            await dispatcher.dispatch(
                NotificationType.account_reinstated,
                user_id,
                email,
                name,
                format_account_reinstated(name),
            )

    async def _load_ad_candidates(
        self, session: AsyncSession, now: datetime
    ) -> List[AdCandidate]:
        result = await session.execute(
            select(Ad)
            .where(Ad.active.is_(True), Ad.end_date <= now + self.reminder_window)
            .order_by(Ad.end_date.asc())
        )
        return [
            AdCandidate(
                id=ad.id,
                title=ad.title,
                advertiser_id=ad.advertiser_id,
                end_date=ad.end_date,
                action=decide_ad_action(
                    ad.active,
                    ad.end_date,
                    ad.last_reminder_sent_at,
                    now,
                    self.reminder_window,
                    self.reminder_interval,
                ),
            )
            for ad in result.scalars().all()
        ]

    async def _advertiser_contact(
        self, session: AsyncSession, ad: AdCandidate
    ) -> Optional[Tuple[str, str]]:
        """Return (email, business name) of the ad's owner, if reachable."""
        advertiser = await session.get(Advertiser, ad.advertiser_id)
        if advertiser is None or not advertiser.email:
            logger.info(f"Ad {ad.id} has no advertiser email on file, notification skipped")
            return None
        return advertiser.email, advertiser.business_name

    async def _expire_ads(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher,
        ads: List[AdCandidate],
        now: datetime,
        summary: PassSummary,
    ) -> None:
        for ad in ads:
            outcome = await session.execute(
                update(Ad)
                .where(Ad.id == ad.id, Ad.active.is_(True), Ad.end_date <= now)
                .values(active=False, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            if outcome.rowcount == 0:
                continue

            logger.info(f"Disabled expired ad: {ad.title} (id: {ad.id})")
            summary.expired.append(ad.ref)

            contact = await self._advertiser_contact(session, ad)
            if contact is None:
                continue
            email, business_name = contact
            await dispatcher.dispatch(
                NotificationType.ad_expired,
                ad.id,
                email,
                business_name,
                format_ad_expired(ad.title, business_name),
            )

    async def _remind_ads(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher,
        ads: List[AdCandidate],
        now: datetime,
        summary: PassSummary,
    ) -> None:
        throttle_cutoff = now - self.reminder_interval
        for ad in ads:
            # Claim the reminder before sending so an overlapping pass cannot send it too
            outcome = await session.execute(
                update(Ad)
                .where(
                    Ad.id == ad.id,
                    Ad.active.is_(True),
                    Ad.end_date > now,
                    Ad.end_date <= now + self.reminder_window,
                    or_(
                        Ad.last_reminder_sent_at.is_(None),
                        Ad.last_reminder_sent_at <= throttle_cutoff,
                    ),
                )
                .values(last_reminder_sent_at=now)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            if outcome.rowcount == 0:
                continue

            logger.info(f"Ad expiring soon: {ad.title} (id: {ad.id})")
            summary.expiring_soon.append(ad.ref)

            contact = await self._advertiser_contact(session, ad)
            if contact is None:
                continue
            email, business_name = contact
            await dispatcher.dispatch(
                NotificationType.ad_expiring,
                ad.id,
                email,
                business_name,
                format_ad_expiring(ad.title, business_name, ad.end_date),
            )
