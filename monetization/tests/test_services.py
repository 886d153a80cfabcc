from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from monetization.conf import MonetizationConfig
from monetization.exceptions import (
    CapExceeded,
    NotFound,
    ValidationRejected,
)
from monetization.models import (
    AdRevenueEvent,
    AnalyticsEvent,
    DailyStreak,
    LedgerTransaction,
    ReferralCode,
    ReferralEarning,
    ReferralRelationship,
    RevenueDistribution,
    Wallet,
)
from monetization.services import (
    AdRevenueService,
    AnalyticsService,
    BonusService,
    Credit,
    DailyCapEnforcer,
    IdempotencyGuard,
    ReferralService,
    StreakService,
    WalletService,
    WithdrawalService,
)
from monetization.tests.utils import ad_view, fund_wallet, make_reel, make_user

# ============================================================
# Wallet Service Tests
# ============================================================


class WalletServiceTest(TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")

    def test_create_wallet_is_idempotent(self):
        wallet = WalletService.create_wallet(self.alice.pk)
        self.assertEqual(wallet, self.alice.wallet)
        self.assertEqual(Wallet.objects.filter(user=self.alice).count(), 1)

    def test_commit_credits_updates_totals_and_subtotals(self):
        result = WalletService.commit_credits(
            [
                Credit(self.alice.pk, Decimal("2"), "bonus", "create"),
                Credit(self.bob.pk, Decimal("0.25"), "bonus", "share_bonus"),
            ]
        )

        self.assertEqual(len(result.transactions), 2)
        self.assertEqual(result.skipped_user_ids, [])

        alice = Wallet.objects.get(user=self.alice)
        self.assertEqual(alice.total_balance, Decimal("2"))
        self.assertEqual(alice.available_balance, Decimal("2"))
        self.assertEqual(alice.total_earned, Decimal("2"))
        self.assertEqual(alice.create_earnings, Decimal("2"))
        self.assertEqual(alice.category_total, alice.total_earned)

        bob = Wallet.objects.get(user=self.bob)
        self.assertEqual(bob.bonus_earnings, Decimal("0.25"))

        for tx in result.transactions:
            self.assertEqual(tx.status, LedgerTransaction.Status.COMPLETED)
            self.assertIsNotNone(tx.processed_at)
            self.assertIsNone(tx.referral_processed)

    def test_missing_wallet_is_skipped(self):
        Wallet.objects.filter(user=self.bob).delete()

        result = WalletService.commit_credits(
            [
                Credit(self.alice.pk, Decimal("1"), "bonus", "create"),
                Credit(self.bob.pk, Decimal("1"), "bonus", "create"),
            ]
        )

        self.assertEqual(result.skipped_user_ids, [self.bob.pk])
        self.assertEqual(len(result.transactions), 1)
        self.assertFalse(LedgerTransaction.objects.filter(user=self.bob).exists())

    def test_missing_wallet_with_require_all_aborts(self):
        Wallet.objects.filter(user=self.bob).delete()

        with self.assertRaises(NotFound):
            WalletService.commit_credits(
                [
                    Credit(self.alice.pk, Decimal("1"), "bonus", "create"),
                    Credit(self.bob.pk, Decimal("1"), "bonus", "create"),
                ],
                require_all=True,
            )

        self.assertEqual(Wallet.objects.get(user=self.alice).total_balance, 0)
        self.assertFalse(LedgerTransaction.objects.exists())

    def test_non_positive_credit_rejected(self):
        with self.assertRaises(ValidationRejected):
            WalletService.commit_credits([Credit(self.alice.pk, Decimal("0"), "bonus", "create")])

    def test_withdrawal_sub_type_cannot_be_credited(self):
        with self.assertRaises(ValidationRejected):
            WalletService.commit_credits([Credit(self.alice.pk, Decimal("1"), "bonus", "withdrawal")])

    def test_credit_bumps_wallet_updated_at(self):
        stale = timezone.now() - timedelta(days=3)
        Wallet.objects.filter(user=self.alice).update(updated_at=stale)

        WalletService.commit_credits([Credit(self.alice.pk, Decimal("1"), "bonus", "create")])

        wallet = Wallet.objects.get(user=self.alice)
        self.assertGreater(wallet.updated_at, stale + timedelta(days=2))


# ============================================================
# Ad Revenue Tests
# ============================================================


class AdRevenueServiceTest(TestCase):
    def setUp(self):
        self.creator = make_user("creator")
        self.viewer = make_user("viewer")
        self.reel = make_reel(self.creator)
        self.service = AdRevenueService(MonetizationConfig())

    def test_distribution_conserves_revenue(self):
        result = self.service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer))

        self.assertTrue(result.accepted)
        self.assertFalse(result.duplicate)

        distribution = result.distribution
        distribution.refresh_from_db()
        self.assertEqual(distribution.status, RevenueDistribution.Status.COMPLETED)
        self.assertEqual(distribution.creator_amount, Decimal("0.6"))
        self.assertEqual(distribution.viewer_amount, Decimal("0.2"))
        self.assertEqual(distribution.app_amount, Decimal("0.2"))
        self.assertEqual(
            distribution.creator_amount + distribution.viewer_amount + distribution.app_amount,
            distribution.total_revenue,
        )

        creator_wallet = Wallet.objects.get(user=self.creator)
        self.assertEqual(creator_wallet.available_balance, Decimal("0.6"))
        self.assertEqual(creator_wallet.ad_earnings, Decimal("0.6"))
        viewer_wallet = Wallet.objects.get(user=self.viewer)
        self.assertEqual(viewer_wallet.available_balance, Decimal("0.2"))

        txs = LedgerTransaction.objects.filter(distribution=distribution)
        self.assertEqual(txs.count(), 2)
        self.assertTrue(all(tx.sub_type == "ad_revenue" for tx in txs))

    def test_one_cent_revenue(self):
        result = self.service.submit_ad_revenue_event(
            **ad_view(self.reel, self.viewer, revenue="0.01")
        )

        self.assertTrue(result.accepted)
        self.assertEqual(result.distribution.creator_amount, Decimal("0.006"))
        self.assertEqual(result.distribution.viewer_amount, Decimal("0.002"))
        self.assertEqual(result.distribution.app_amount, Decimal("0.002"))

    def test_sub_cent_revenue_conserves_exactly(self):
        cases = [
            ("0.009999", "0.005999", "0.001999", "0.002001"),
            ("0.003333", "0.001999", "0.000666", "0.000668"),
            ("0.0071", "0.00426", "0.00142", "0.00142"),
            ("1.234567", "0.74074", "0.246913", "0.246914"),
        ]
        for index, (revenue, creator, viewer, app) in enumerate(cases):
            with self.subTest(revenue=revenue):
                result = self.service.submit_ad_revenue_event(
                    **ad_view(self.reel, self.viewer, f"imp-sub-{index}", revenue=revenue)
                )

                self.assertTrue(result.accepted)
                distribution = result.distribution
                self.assertEqual(distribution.creator_amount, Decimal(creator))
                self.assertEqual(distribution.viewer_amount, Decimal(viewer))
                self.assertEqual(distribution.app_amount, Decimal(app))
                self.assertEqual(
                    distribution.creator_amount + distribution.viewer_amount + distribution.app_amount,
                    distribution.total_revenue,
                )

    def test_event_keeps_reported_revenue(self):
        result = self.service.submit_ad_revenue_event(
            **ad_view(self.reel, self.viewer, revenue="0.0123456789")
        )

        event = AdRevenueEvent.objects.get()
        self.assertEqual(event.revenue, Decimal("0.0123456789"))
        self.assertTrue(event.is_valid_view)
        result.distribution.refresh_from_db()
        self.assertEqual(result.distribution.total_revenue, Decimal("0.012345"))

    def test_self_view_counts_both_shares_against_cap(self):
        config = MonetizationConfig.from_settings({"daily_caps": {"ad_revenue": "1"}})
        service = AdRevenueService(config)

        first = service.submit_ad_revenue_event(**ad_view(self.reel, self.creator, "imp-1"))
        second = service.submit_ad_revenue_event(
            **ad_view(self.reel, self.creator, "imp-2", revenue="0.30")
        )

        self.assertTrue(first.accepted)
        self.assertFalse(second.accepted)
        self.assertEqual(second.reason, "Daily ad_revenue limit exceeded")
        wallet = Wallet.objects.get(user=self.creator)
        self.assertEqual(wallet.ad_earnings, Decimal("0.8"))
        self.assertLessEqual(wallet.ad_earnings, Decimal("1"))

    def test_duplicate_impression_is_a_no_op(self):
        first = self.service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer))
        second = self.service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer))

        self.assertTrue(second.accepted)
        self.assertTrue(second.duplicate)
        self.assertEqual(second.distribution.pk, first.distribution.pk)
        self.assertEqual(AdRevenueEvent.objects.count(), 1)
        self.assertEqual(Wallet.objects.get(user=self.creator).available_balance, Decimal("0.6"))
        self.assertTrue(IdempotencyGuard.has_settled(self.reel.pk, self.viewer.pk, "imp-1"))

    def test_short_view_rejected_without_writes(self):
        result = self.service.submit_ad_revenue_event(
            **ad_view(self.reel, self.viewer, view_duration=12)
        )

        self.assertFalse(result.accepted)
        self.assertEqual(result.reason, "View too short for revenue sharing: 12s < 30s required")
        self.assertFalse(AdRevenueEvent.objects.exists())
        self.assertFalse(LedgerTransaction.objects.exists())

    def test_tiny_revenue_rejected(self):
        result = self.service.submit_ad_revenue_event(
            **ad_view(self.reel, self.viewer, revenue="0.001")
        )
        self.assertFalse(result.accepted)
        self.assertEqual(result.reason, "Revenue amount too small to process")

    def test_unknown_reel_raises(self):
        params = ad_view(self.reel, self.viewer)
        params["reel_id"] = self.reel.pk + 100
        with self.assertRaises(NotFound):
            self.service.submit_ad_revenue_event(**params)

    def test_unknown_viewer_rejected(self):
        params = ad_view(self.reel, self.viewer)
        params["viewer_id"] = self.viewer.pk + 100
        result = self.service.submit_ad_revenue_event(**params)
        self.assertFalse(result.accepted)
        self.assertEqual(result.reason, "Viewer not found")

    def test_daily_cap_blocks_whole_distribution(self):
        config = MonetizationConfig.from_settings({"daily_caps": {"ad_revenue": "1"}})
        service = AdRevenueService(config)

        first = service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer, "imp-1"))
        second = service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer, "imp-2"))

        self.assertTrue(first.accepted)
        self.assertFalse(second.accepted)
        self.assertEqual(second.reason, "Daily ad_revenue limit exceeded")
        self.assertEqual(AdRevenueEvent.objects.count(), 1)
        self.assertEqual(Wallet.objects.get(user=self.viewer).available_balance, Decimal("0.2"))

    def test_missing_viewer_wallet_skips_only_viewer(self):
        Wallet.objects.filter(user=self.viewer).delete()

        result = self.service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer))

        self.assertTrue(result.accepted)
        result.distribution.refresh_from_db()
        self.assertEqual(result.distribution.skipped_parties, [self.viewer.pk])
        self.assertEqual(Wallet.objects.get(user=self.creator).available_balance, Decimal("0.6"))

    def test_settlement_records_analytics_event(self):
        self.service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer))
        self.assertTrue(
            AnalyticsEvent.objects.filter(
                event_type=AnalyticsEvent.EventType.AD_VIEW_SETTLED, user=self.viewer
            ).exists()
        )


class DailyCapEnforcerTest(TestCase):
    def setUp(self):
        self.user = make_user("alice")
        self.enforcer = DailyCapEnforcer(
            MonetizationConfig.from_settings({"daily_caps": {"create": "3"}})
        )

    def test_within_cap(self):
        WalletService.commit_credits([Credit(self.user.pk, Decimal("2"), "bonus", "create")])
        self.enforcer.check_cap(self.user.pk, "create", Decimal("1"))

    def test_over_cap(self):
        WalletService.commit_credits([Credit(self.user.pk, Decimal("2"), "bonus", "create")])
        with self.assertRaises(CapExceeded):
            self.enforcer.check_cap(self.user.pk, "create", Decimal("1.5"))

    def test_uncapped_sub_type(self):
        self.enforcer.check_cap(self.user.pk, "daily_streak", Decimal("1000000"))


# ============================================================
# Referral Tests
# ============================================================


class ReferralCodeTest(TestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.newcomer = make_user("newcomer")
        self.service = ReferralService(MonetizationConfig())

    def test_generated_code_and_share_link(self):
        issued = self.service.create_referral_code(self.owner.pk)

        self.assertTrue(issued.created)
        self.assertRegex(issued.code.code, r"^RS[A-Z0-9]{6}$")
        self.assertEqual(issued.share_link, f"https://reelshare.app/signup?ref={issued.code.code}")

    def test_existing_active_code_returned(self):
        first = self.service.create_referral_code(self.owner.pk)
        second = self.service.create_referral_code(self.owner.pk)

        self.assertFalse(second.created)
        self.assertEqual(first.code.pk, second.code.pk)

    def test_custom_code(self):
        issued = self.service.create_referral_code(self.owner.pk, custom_code="reels2026")
        self.assertEqual(issued.code.code, "REELS2026")

    def test_custom_code_validation(self):
        with self.assertRaises(ValidationRejected):
            self.service.create_referral_code(self.owner.pk, custom_code="abc")
        with self.assertRaises(ValidationRejected):
            self.service.create_referral_code(self.owner.pk, custom_code="HAS-DASH")

    def test_custom_code_must_be_unique(self):
        self.service.create_referral_code(self.owner.pk, custom_code="TAKEN1")
        with self.assertRaisesMessage(ValidationRejected, "Custom code already exists"):
            self.service.create_referral_code(self.newcomer.pk, custom_code="TAKEN1")

    def test_unknown_user(self):
        with self.assertRaises(NotFound):
            self.service.create_referral_code(self.owner.pk + 100)


class ApplyReferralCodeTest(TestCase):
    def setUp(self):
        self.referrer = make_user("referrer")
        self.referee = make_user("referee")
        self.service = ReferralService(MonetizationConfig())
        self.code = self.service.create_referral_code(self.referrer.pk).code

    def test_apply_pays_signup_bonus_pair(self):
        result = self.service.apply_referral_code(
            self.referee.pk, self.code.code.lower(), "referee@example.com"
        )

        self.assertTrue(result.accepted)
        self.assertEqual(result.referrer_id, self.referrer.pk)
        self.assertEqual(result.bonus_awarded, Decimal("5"))

        referrer_wallet = Wallet.objects.get(user=self.referrer)
        self.assertEqual(referrer_wallet.referral_earnings, Decimal("10"))
        referee_wallet = Wallet.objects.get(user=self.referee)
        self.assertEqual(referee_wallet.bonus_earnings, Decimal("5"))

        relationship = ReferralRelationship.objects.get(referee=self.referee)
        self.assertTrue(relationship.bonus_paid)
        self.assertEqual(relationship.status, ReferralRelationship.Status.ACTIVE)

        self.code.refresh_from_db()
        self.assertEqual(self.code.total_uses, 1)

    def test_invalid_code(self):
        with self.assertRaisesMessage(ValidationRejected, "Invalid referral code"):
            self.service.apply_referral_code(self.referee.pk, "RSNOPE00")

    def test_self_referral(self):
        with self.assertRaisesMessage(ValidationRejected, "Cannot use your own referral code"):
            self.service.apply_referral_code(self.referrer.pk, self.code.code)

    def test_referred_only_once(self):
        self.service.apply_referral_code(self.referee.pk, self.code.code)
        other = make_user("other")
        other_code = self.service.create_referral_code(other.pk).code

        with self.assertRaisesMessage(ValidationRejected, "User already has a referral relationship"):
            self.service.apply_referral_code(self.referee.pk, other_code.code)

    def test_expired_code_is_marked(self):
        ReferralCode.objects.filter(pk=self.code.pk).update(
            expires_at=timezone.now() - timedelta(days=1)
        )

        with self.assertRaisesMessage(ValidationRejected, "Referral code has expired"):
            self.service.apply_referral_code(self.referee.pk, self.code.code)

        self.code.refresh_from_db()
        self.assertEqual(self.code.status, ReferralCode.Status.EXPIRED)
        self.assertFalse(ReferralRelationship.objects.exists())

    def test_code_exhausted_at_max_uses(self):
        ReferralCode.objects.filter(pk=self.code.pk).update(max_uses=1)

        self.service.apply_referral_code(self.referee.pk, self.code.code)
        self.code.refresh_from_db()
        self.assertEqual(self.code.status, ReferralCode.Status.EXHAUSTED)

        latecomer = make_user("latecomer")
        with self.assertRaisesMessage(ValidationRejected, "Referral code is no longer active"):
            self.service.apply_referral_code(latecomer.pk, self.code.code)

    def test_used_up_active_code_is_exhausted(self):
        ReferralCode.objects.filter(pk=self.code.pk).update(max_uses=2, total_uses=2)

        with self.assertRaisesMessage(ValidationRejected, "Referral code has reached its usage limit"):
            self.service.apply_referral_code(self.referee.pk, self.code.code)

        self.code.refresh_from_db()
        self.assertEqual(self.code.status, ReferralCode.Status.EXHAUSTED)

    def test_referrer_limit(self):
        service = ReferralService(MonetizationConfig(max_referrals_per_user=1))
        service.apply_referral_code(self.referee.pk, self.code.code)

        second = make_user("second")
        with self.assertRaises(ValidationRejected):
            service.apply_referral_code(second.pk, self.code.code)


class ReferralCascadeTest(TestCase):
    def setUp(self):
        self.service = ReferralService(MonetizationConfig())
        self.grandparent = make_user("grandparent")
        self.referrer = make_user("referrer")
        self.earner = make_user("earner")

        top_code = self.service.create_referral_code(self.grandparent.pk).code
        self.service.apply_referral_code(self.referrer.pk, top_code.code)
        code = self.service.create_referral_code(self.referrer.pk).code
        self.service.apply_referral_code(self.earner.pk, code.code)

    def earn(self, amount="1.00"):
        return WalletService.commit_credits(
            [Credit(self.earner.pk, Decimal(amount), "earning", "ad_revenue")]
        ).transactions[0]

    def test_referrer_receives_five_percent(self):
        source = self.earn()
        self.assertFalse(source.referral_processed)

        result = self.service.process_referral_revenue(source)

        self.assertTrue(result.paid)
        self.assertEqual(result.amount, Decimal("0.05"))
        earning = ReferralEarning.objects.get(source_transaction=source)
        self.assertEqual(earning.referrer, self.referrer)
        self.assertEqual(earning.transaction.sub_type, "referral_revenue")

        source.refresh_from_db()
        self.assertTrue(source.referral_processed)

        relationship = ReferralRelationship.objects.get(referee=self.earner)
        self.assertEqual(relationship.total_revenue_shared, Decimal("0.05"))
        self.assertIsNotNone(relationship.last_revenue_share)

    def test_cascade_is_a_single_hop(self):
        self.service.process_referral_revenue(self.earn())

        self.assertEqual(ReferralEarning.objects.count(), 1)
        self.assertFalse(ReferralEarning.objects.filter(referrer=self.grandparent).exists())
        # Only the signup bonus reached the grandparent
        grandparent_wallet = Wallet.objects.get(user=self.grandparent)
        self.assertEqual(grandparent_wallet.referral_earnings, Decimal("10"))

    def test_cascade_runs_once_per_source(self):
        source = self.earn()
        self.service.process_referral_revenue(source)
        second = self.service.process_referral_revenue(source)

        self.assertFalse(second.paid)
        self.assertEqual(ReferralEarning.objects.count(), 1)

    def test_failed_cascade_keeps_primary_and_is_repaired(self):
        Wallet.objects.filter(user=self.referrer).delete()
        source = self.earn()

        result = self.service.process_referral_revenue(source)

        self.assertFalse(result.paid)
        self.assertTrue(result.error)
        source.refresh_from_db()
        self.assertFalse(source.referral_processed)
        self.assertIn("Wallet not found", source.referral_error)
        self.assertEqual(Wallet.objects.get(user=self.earner).ad_earnings, Decimal("1"))

        WalletService.create_wallet(self.referrer.pk)
        summary = self.service.reconcile()

        self.assertEqual(summary, {"scanned": 1, "paid": 1, "failed": 0})
        source.refresh_from_db()
        self.assertTrue(source.referral_processed)
        self.assertEqual(source.referral_error, "")

    def test_expired_relationship_pays_nothing(self):
        ReferralRelationship.objects.filter(referee=self.earner).update(
            signup_date=timezone.now() - timedelta(days=366)
        )

        result = self.service.process_referral_revenue(self.earn())

        self.assertFalse(result.paid)
        relationship = ReferralRelationship.objects.get(referee=self.earner)
        self.assertEqual(relationship.status, ReferralRelationship.Status.EXPIRED)

    def test_ad_revenue_cascades_to_creators_referrer(self):
        reel = make_reel(self.earner)
        viewer = make_user("viewer")

        result = AdRevenueService(MonetizationConfig()).submit_ad_revenue_event(**ad_view(reel, viewer))

        paid = [cascade for cascade in result.cascades if cascade.paid]
        self.assertEqual(len(paid), 1)
        self.assertEqual(paid[0].referrer_id, self.referrer.pk)
        self.assertEqual(paid[0].amount, Decimal("0.03"))

    def test_expire_relationships(self):
        ReferralRelationship.objects.filter(referee=self.earner).update(
            signup_date=timezone.now() - timedelta(days=400)
        )
        self.assertEqual(self.service.expire_relationships(), 1)

    def test_referral_stats(self):
        self.service.process_referral_revenue(self.earn())

        stats = ReferralService.get_referral_stats(self.referrer.pk)

        self.assertEqual(stats["total_referrals"], 1)
        self.assertEqual(stats["active_referrals"], 1)
        self.assertEqual(stats["total_earnings"], Decimal("0.05"))
        self.assertEqual(stats["top_referral"]["user_id"], self.earner.pk)
        self.assertEqual(len(stats["recent_earnings"]), 1)


# ============================================================
# Streak Tests
# ============================================================


class StreakServiceTest(TestCase):
    def setUp(self):
        self.user = make_user("alice")
        self.service = StreakService(MonetizationConfig())
        self.day_one = date(2026, 3, 1)

    def check_in_days(self, days, start=None):
        start = start or self.day_one
        return [self.service.check_in(self.user.pk, today=start + timedelta(days=i)) for i in range(days)]

    def test_first_check_in(self):
        result = self.service.check_in(self.user.pk, today=self.day_one)

        self.assertEqual(result.streak_count, 1)
        self.assertEqual(result.bonus, Decimal("1"))
        self.assertFalse(result.streak_broken)
        self.assertEqual(Wallet.objects.get(user=self.user).streak_earnings, Decimal("1"))

    def test_same_day_check_in_pays_nothing(self):
        self.service.check_in(self.user.pk, today=self.day_one)
        again = self.service.check_in(self.user.pk, today=self.day_one)

        self.assertEqual(again.bonus, Decimal("0"))
        self.assertEqual(again.streak_count, 1)
        self.assertEqual(
            LedgerTransaction.objects.filter(user=self.user, sub_type="daily_streak").count(), 1
        )

    def test_day_seven_bonus_and_milestone(self):
        results = self.check_in_days(7)

        self.assertEqual([r.bonus for r in results[:6]], [Decimal("1")] * 6)
        self.assertEqual(results[6].streak_count, 7)
        self.assertEqual(results[6].bonus, Decimal("2"))
        self.assertEqual(results[6].milestone_reached, 7)

        streak = DailyStreak.objects.get(user=self.user)
        self.assertEqual(streak.milestones, {"7": "2026-03-07"})
        self.assertEqual(streak.streak_rewards, Decimal("8"))
        self.assertEqual(Wallet.objects.get(user=self.user).streak_earnings, Decimal("8"))

    def test_bonus_is_capped(self):
        self.assertEqual(self.service.bonus_for(28), Decimal("5"))
        self.assertEqual(self.service.bonus_for(100), Decimal("5"))

    def test_gap_breaks_streak_and_keeps_max(self):
        self.check_in_days(3)
        result = self.service.check_in(self.user.pk, today=self.day_one + timedelta(days=5))

        self.assertTrue(result.streak_broken)
        self.assertEqual(result.streak_count, 1)
        self.assertEqual(result.bonus, Decimal("1"))
        streak = DailyStreak.objects.get(user=self.user)
        self.assertEqual(streak.max_streak, 3)

    def test_milestone_recorded_once(self):
        self.check_in_days(7)
        rerun = self.check_in_days(7, start=self.day_one + timedelta(days=10))

        self.assertEqual(rerun[6].streak_count, 7)
        self.assertIsNone(rerun[6].milestone_reached)
        streak = DailyStreak.objects.get(user=self.user)
        self.assertEqual(streak.milestones, {"7": "2026-03-07"})
        self.assertEqual(streak.max_streak, 7)

    def test_unknown_user(self):
        with self.assertRaises(NotFound):
            self.service.check_in(self.user.pk + 100)


# ============================================================
# Fixed Bonus Tests
# ============================================================


class BonusServiceTest(TestCase):
    def setUp(self):
        self.user = make_user("alice")
        self.service = BonusService(MonetizationConfig())

    def test_like_bonus(self):
        tx = self.service.submit_fixed_bonus(self.user.pk, "like_bonus", "0.05")

        self.assertEqual(tx.transaction_type, LedgerTransaction.TransactionType.BONUS)
        self.assertEqual(tx.amount, Decimal("0.05"))
        self.assertIsNone(tx.referral_processed)
        self.assertEqual(Wallet.objects.get(user=self.user).bonus_earnings, Decimal("0.05"))

    def test_amount_over_limit(self):
        with self.assertRaises(ValidationRejected):
            self.service.submit_fixed_bonus(self.user.pk, "like_bonus", "0.06")
        with self.assertRaises(ValidationRejected):
            self.service.submit_fixed_bonus(self.user.pk, "create", "3")

    def test_non_positive_amount(self):
        with self.assertRaises(ValidationRejected):
            self.service.submit_fixed_bonus(self.user.pk, "share_bonus", "0")

    def test_invalid_bonus_type(self):
        with self.assertRaisesMessage(ValidationRejected, "Invalid bonus type"):
            self.service.submit_fixed_bonus(self.user.pk, "ad_revenue", "0.01")

    def test_daily_cap(self):
        service = BonusService(
            MonetizationConfig.from_settings({"daily_caps": {"create": "4"}})
        )
        service.submit_fixed_bonus(self.user.pk, "create", "2")
        service.submit_fixed_bonus(self.user.pk, "create", "2")

        with self.assertRaises(CapExceeded):
            service.submit_fixed_bonus(self.user.pk, "create", "1")
        self.assertEqual(Wallet.objects.get(user=self.user).create_earnings, Decimal("4"))

    def test_missing_wallet(self):
        Wallet.objects.filter(user=self.user).delete()
        with self.assertRaises(NotFound):
            self.service.submit_fixed_bonus(self.user.pk, "create", "1")


# ============================================================
# Withdrawal Tests
# ============================================================


class WithdrawalServiceTest(TestCase):
    def setUp(self):
        self.user = make_user("alice")
        fund_wallet(self.user, 150)
        self.service = WithdrawalService(MonetizationConfig())

    def test_request_moves_funds_to_pending(self):
        tx = self.service.request(self.user.pk, Decimal("100"))

        self.assertEqual(tx.status, LedgerTransaction.Status.PENDING)
        self.assertEqual(tx.sub_type, LedgerTransaction.SubType.WITHDRAWAL)
        wallet = Wallet.objects.get(user=self.user)
        self.assertEqual(wallet.available_balance, Decimal("50"))
        self.assertEqual(wallet.pending_balance, Decimal("100"))
        self.assertEqual(wallet.total_balance, Decimal("150"))

    def test_settle(self):
        tx = self.service.request(self.user.pk, Decimal("100"))
        settled = WithdrawalService.settle(tx.id)

        self.assertEqual(settled.status, LedgerTransaction.Status.COMPLETED)
        self.assertIsNotNone(settled.processed_at)
        wallet = Wallet.objects.get(user=self.user)
        self.assertEqual(wallet.pending_balance, 0)
        self.assertEqual(wallet.total_balance, Decimal("50"))
        self.assertEqual(wallet.total_withdrawn, Decimal("100"))
        self.assertEqual(wallet.total_balance, wallet.available_balance + wallet.pending_balance)

    def test_settle_twice_raises(self):
        tx = self.service.request(self.user.pk, Decimal("100"))
        WithdrawalService.settle(tx.id)
        with self.assertRaises(LedgerTransaction.DoesNotExist):
            WithdrawalService.settle(tx.id)

    def test_insufficient_balance(self):
        with self.assertRaisesMessage(ValidationRejected, "Insufficient balance"):
            self.service.request(self.user.pk, Decimal("200"))

        wallet = Wallet.objects.get(user=self.user)
        self.assertEqual(wallet.available_balance, Decimal("150"))
        self.assertFalse(
            LedgerTransaction.objects.filter(transaction_type="withdrawal").exists()
        )

    def test_below_minimum(self):
        with self.assertRaises(ValidationRejected):
            self.service.request(self.user.pk, Decimal("50"))

    def test_missing_wallet(self):
        other = make_user("bob")
        Wallet.objects.filter(user=other).delete()
        with self.assertRaises(NotFound):
            self.service.request(other.pk, Decimal("100"))


# ============================================================
# Analytics Tests
# ============================================================


class AnalyticsServiceTest(TestCase):
    def setUp(self):
        self.creator = make_user("creator")
        self.viewer = make_user("viewer")
        self.reel = make_reel(self.creator)
        service = AdRevenueService(MonetizationConfig())
        service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer, "imp-1"))
        service.submit_ad_revenue_event(**ad_view(self.reel, self.viewer, "imp-2", revenue="3.00"))

    def test_totals(self):
        stats = AnalyticsService.get_ad_revenue_stats()

        self.assertEqual(stats["total_views"], 2)
        self.assertEqual(stats["total_revenue"], Decimal("4"))
        self.assertEqual(stats["creator_revenue"], Decimal("2.4"))
        self.assertEqual(stats["top_providers"][0]["provider"], "admob")

    def test_per_user(self):
        stats = AnalyticsService.get_ad_revenue_stats(user_id=self.viewer.pk)
        self.assertEqual(stats["earned_as_viewer"], Decimal("0.8"))
        self.assertEqual(stats["earned_as_creator"], 0)

    def test_cleanup_prunes_only_expired_events(self):
        AnalyticsEvent.objects.update(created_at=timezone.now() - timedelta(days=8))
        AnalyticsEvent.objects.create(event_type=AnalyticsEvent.EventType.STREAK_CHECK_IN)

        deleted = AnalyticsService(MonetizationConfig(batch_size=1)).cleanup_expired_events()

        self.assertEqual(deleted, 2)
        self.assertEqual(AnalyticsEvent.objects.count(), 1)
        self.assertEqual(AdRevenueEvent.objects.count(), 2)
        self.assertEqual(RevenueDistribution.objects.count(), 2)
