from datetime import datetime, timedelta

from unihaven.scheduler.lifecycle import (
    AdAction,
    AdPhase,
    decide_ad_action,
    derive_ad_status,
    is_user_active,
    should_lift_suspension,
)

NOW = datetime(2025, 3, 10, 12, 0, 0)


class TestDecideAdAction:
    def test_expire_when_end_date_passed(self):
        action = decide_ad_action(True, NOW - timedelta(seconds=1), None, NOW)
        assert action is AdAction.expire

    def test_expire_when_end_date_equals_now(self):
        assert decide_ad_action(True, NOW, None, NOW) is AdAction.expire

    def test_expire_wins_over_stale_reminder(self):
        action = decide_ad_action(
            True, NOW - timedelta(hours=1), NOW - timedelta(days=5), NOW
        )
        assert action is AdAction.expire

    def test_inactive_ad_is_terminal(self):
        assert decide_ad_action(False, NOW - timedelta(days=1), None, NOW) is AdAction.none
        assert decide_ad_action(False, NOW + timedelta(days=1), None, NOW) is AdAction.none

    def test_first_reminder_inside_window(self):
        action = decide_ad_action(True, NOW + timedelta(days=2), None, NOW)
        assert action is AdAction.remind

    def test_reminder_at_window_edge(self):
        action = decide_ad_action(True, NOW + timedelta(days=3), None, NOW)
        assert action is AdAction.remind

    def test_no_reminder_outside_window(self):
        action = decide_ad_action(True, NOW + timedelta(days=3, seconds=1), None, NOW)
        assert action is AdAction.none

    def test_reminder_throttled_within_24h(self):
        action = decide_ad_action(
            True, NOW + timedelta(days=2), NOW - timedelta(hours=23), NOW
        )
        assert action is AdAction.none

    def test_reminder_repeats_after_24h(self):
        action = decide_ad_action(
            True, NOW + timedelta(days=2), NOW - timedelta(hours=25), NOW
        )
        assert action is AdAction.remind

    def test_reminder_exactly_24h_later(self):
        action = decide_ad_action(
            True, NOW + timedelta(days=1), NOW - timedelta(hours=24), NOW
        )
        assert action is AdAction.remind

    def test_custom_window_and_interval(self):
        action = decide_ad_action(
            True,
            NOW + timedelta(days=6),
            NOW - timedelta(hours=13),
            NOW,
            window=timedelta(days=7),
            interval=timedelta(hours=12),
        )
        assert action is AdAction.remind


class TestDeriveAdStatus:
    def test_active(self):
        status = derive_ad_status(True, NOW + timedelta(days=10), None, NOW)
        assert status.phase is AdPhase.active

    def test_expiring_soon_keeps_last_reminder(self):
        last = NOW - timedelta(hours=3)
        status = derive_ad_status(True, NOW + timedelta(days=1), last, NOW)
        assert status.phase is AdPhase.expiring_soon
        assert status.last_reminder_sent_at == last

    def test_past_end_date_reads_as_expired_before_flag_flips(self):
        status = derive_ad_status(True, NOW - timedelta(minutes=1), None, NOW)
        assert status.phase is AdPhase.expired

    def test_deactivated(self):
        status = derive_ad_status(False, NOW + timedelta(days=10), None, NOW)
        assert status.phase is AdPhase.expired


class TestSuspensionRules:
    def test_lift_when_end_passed(self):
        assert should_lift_suspension(True, NOW - timedelta(minutes=1), NOW) is True

    def test_lift_when_end_equals_now(self):
        assert should_lift_suspension(True, NOW, NOW) is True

    def test_indefinite_suspension_never_lifted(self):
        assert should_lift_suspension(True, None, NOW) is False

    def test_future_end_not_lifted(self):
        assert should_lift_suspension(True, NOW + timedelta(minutes=1), NOW) is False

    def test_not_suspended_is_noop(self):
        assert should_lift_suspension(False, NOW - timedelta(days=1), NOW) is False

    def test_is_user_active(self):
        assert is_user_active(False, None, NOW) is True
        assert is_user_active(True, None, NOW) is False
        assert is_user_active(True, NOW + timedelta(hours=1), NOW) is False
        assert is_user_active(True, NOW - timedelta(hours=1), NOW) is True
