"""Pure transition rules for suspensions and ad campaigns.

Nothing here touches the database or a mail transport; the reconciler reads
stored fields, asks these functions what to do, then applies the answer with
predicate-guarded updates.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

DEFAULT_REMINDER_WINDOW = timedelta(days=3)
DEFAULT_REMINDER_INTERVAL = timedelta(hours=24)


class AdPhase(enum.Enum):
    active = "active"
    expiring_soon = "expiring_soon"
    expired = "expired"


class AdAction(enum.Enum):
    none = "none"
    expire = "expire"
    remind = "remind"


@dataclass(frozen=True)
class AdStatus:
    phase: AdPhase
    last_reminder_sent_at: Optional[datetime] = None


def derive_ad_status(
    active: bool,
    end_date: datetime,
    last_reminder_sent_at: Optional[datetime],
    now: datetime,
    window: timedelta = DEFAULT_REMINDER_WINDOW,
) -> AdStatus:
    """Read-time state of an ad.

    An active ad whose end date has passed is reported as expired even before
    the reconciler has flipped its flag.
    """
    if not active or end_date <= now:
        return AdStatus(AdPhase.expired, last_reminder_sent_at)
    if end_date <= now + window:
        return AdStatus(AdPhase.expiring_soon, last_reminder_sent_at)
    return AdStatus(AdPhase.active, last_reminder_sent_at)


def decide_ad_action(
    active: bool,
    end_date: datetime,
    last_reminder_sent_at: Optional[datetime],
    now: datetime,
    window: timedelta = DEFAULT_REMINDER_WINDOW,
    interval: timedelta = DEFAULT_REMINDER_INTERVAL,
) -> AdAction:
    if not active:
        return AdAction.none
    if end_date <= now:
        return AdAction.expire
    if end_date <= now + window and (
        last_reminder_sent_at is None or last_reminder_sent_at <= now - interval
    ):
        return AdAction.remind
    return AdAction.none


def should_lift_suspension(
    is_suspended: bool, suspended_until: Optional[datetime], now: datetime
) -> bool:
    # Indefinite suspensions (no end date) are left for an administrator
    return bool(is_suspended) and suspended_until is not None and suspended_until <= now


def is_user_active(
    is_suspended: bool, suspended_until: Optional[datetime], now: datetime
) -> bool:
    """Whether the account may use the platform right now.

    A suspension whose end has passed counts as lifted even if the reconciler
    has not cleared the flag yet.
    """
    if not is_suspended:
        return True
    return suspended_until is not None and suspended_until < now
