from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from monetization.exceptions import TransientConflict
from monetization.models import LedgerTransaction, ReferralCode, Wallet
from monetization.services import ReferralService
from monetization.tests.utils import fund_wallet, make_reel, make_user


def ad_payload(reel, viewer, impression_id="imp-1", **overrides):
    payload = {
        "reel_id": reel.pk,
        "viewer_id": viewer.pk,
        "ad_provider": "admob",
        "ad_type": "rewarded",
        "revenue": "1.00",
        "cpm": "2.50",
        "view_duration": 45,
        "video_duration": 60,
        "impression_id": impression_id,
    }
    payload.update(overrides)
    return payload


# ============================================================
# API Tests
# ============================================================


class AdRevenueAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.creator = make_user("creator")
        self.viewer = make_user("viewer")
        self.reel = make_reel(self.creator)

    def test_submit_settles(self):
        response = self.client.post("/monetization/ad-revenue/", ad_payload(self.reel, self.viewer), format="json")

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["accepted"])
        self.assertFalse(response.data["duplicate"])
        self.assertEqual(Decimal(response.data["distribution"]["creator_amount"]), Decimal("0.6"))
        self.assertEqual(Decimal(response.data["distribution"]["app_amount"]), Decimal("0.2"))
        self.assertEqual(len(response.data["transactions"]), 2)

    def test_duplicate_returns_existing_distribution(self):
        first = self.client.post("/monetization/ad-revenue/", ad_payload(self.reel, self.viewer), format="json")
        second = self.client.post("/monetization/ad-revenue/", ad_payload(self.reel, self.viewer), format="json")

        self.assertEqual(second.status_code, 200)
        self.assertTrue(second.data["accepted"])
        self.assertTrue(second.data["duplicate"])
        self.assertEqual(second.data["distribution"]["id"], first.data["distribution"]["id"])

    def test_ineligible_view(self):
        response = self.client.post(
            "/monetization/ad-revenue/",
            ad_payload(self.reel, self.viewer, view_duration=12),
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["accepted"])
        self.assertEqual(response.data["reason"], "View too short for revenue sharing: 12s < 30s required")

    def test_unknown_reel(self):
        payload = ad_payload(self.reel, self.viewer, reel_id=self.reel.pk + 100)
        response = self.client.post("/monetization/ad-revenue/", payload, format="json")
        self.assertEqual(response.status_code, 404)

    def test_malformed_payload(self):
        payload = ad_payload(self.reel, self.viewer)
        del payload["impression_id"]
        response = self.client.post("/monetization/ad-revenue/", payload, format="json")
        self.assertEqual(response.status_code, 400)

    @patch("monetization.views.revenue.AdRevenueService.submit_ad_revenue_event")
    def test_conflict_maps_to_503(self, mock_submit):
        mock_submit.side_effect = TransientConflict()
        response = self.client.post("/monetization/ad-revenue/", ad_payload(self.reel, self.viewer), format="json")
        self.assertEqual(response.status_code, 503)

    def test_requests_are_logged(self):
        with self.assertLogs("monetization.middleware", level="INFO") as logs:
            self.client.post("/monetization/ad-revenue/", ad_payload(self.reel, self.viewer), format="json")
        self.assertTrue(any("API request: POST /monetization/ad-revenue/" in line for line in logs.output))
        self.assertTrue(any("status=201" in line for line in logs.output))


class WalletAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("alice")
        fund_wallet(self.user, 150)

    def test_retrieve_wallet(self):
        response = self.client.get(f"/monetization/wallets/{self.user.pk}/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user_id"], self.user.pk)
        self.assertEqual(Decimal(response.data["available_balance"]), Decimal("150"))
        self.assertEqual(Decimal(response.data["watch_earnings"]), Decimal("150"))

    def test_retrieve_missing_wallet(self):
        response = self.client.get(f"/monetization/wallets/{self.user.pk + 100}/")
        self.assertEqual(response.status_code, 404)

    def test_withdraw(self):
        response = self.client.post(
            f"/monetization/wallets/{self.user.pk}/withdraw", {"amount": "120"}, format="json"
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], "pending")
        wallet = Wallet.objects.get(user=self.user)
        self.assertEqual(wallet.pending_balance, Decimal("120"))

    def test_withdraw_insufficient_balance(self):
        response = self.client.post(
            f"/monetization/wallets/{self.user.pk}/withdraw", {"amount": "500"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["reason"], "Insufficient balance")

    def test_withdraw_negative_amount(self):
        response = self.client.post(
            f"/monetization/wallets/{self.user.pk}/withdraw", {"amount": "-5"}, format="json"
        )
        self.assertEqual(response.status_code, 400)


class TransactionAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("alice")
        self.earning = fund_wallet(self.user, 150)
        self.client.post(f"/monetization/wallets/{self.user.pk}/withdraw", {"amount": "100"}, format="json")

    def test_list_transactions(self):
        response = self.client.get(f"/monetization/wallets/{self.user.pk}/transactions/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 2)

    def test_filter_by_status(self):
        response = self.client.get(f"/monetization/wallets/{self.user.pk}/transactions/?status=pending")
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["transaction_type"], "withdrawal")

    def test_filter_by_type_and_sub_type(self):
        response = self.client.get(
            f"/monetization/wallets/{self.user.pk}/transactions/?type=earning&sub_type=watch"
        )
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["id"], self.earning.id)

    def test_transaction_detail(self):
        response = self.client.get(f"/monetization/wallets/{self.user.pk}/transactions/{self.earning.id}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.data["amount"]), Decimal("150"))

    def test_transaction_of_other_user(self):
        other = make_user("bob")
        response = self.client.get(f"/monetization/wallets/{other.pk}/transactions/{self.earning.id}/")
        self.assertEqual(response.status_code, 404)


class BonusAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("alice")

    def test_share_bonus(self):
        response = self.client.post(
            "/monetization/bonuses/",
            {"user_id": self.user.pk, "sub_type": "share_bonus", "amount": "0.25"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["transaction"]["sub_type"], "share_bonus")

    def test_bonus_over_limit(self):
        response = self.client.post(
            "/monetization/bonuses/",
            {"user_id": self.user.pk, "sub_type": "share_bonus", "amount": "1.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["accepted"])

    def test_unknown_bonus_type(self):
        response = self.client.post(
            "/monetization/bonuses/",
            {"user_id": self.user.pk, "sub_type": "ad_revenue", "amount": "0.01"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)


class ReferralAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.referrer = make_user("referrer")
        self.referee = make_user("referee")

    def test_create_code(self):
        response = self.client.post("/monetization/referrals/codes/", {"user_id": self.referrer.pk}, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["code"].startswith("RS"))
        self.assertTrue(response.data["share_link"].endswith(f"/signup?ref={response.data['code']}"))

        again = self.client.post("/monetization/referrals/codes/", {"user_id": self.referrer.pk}, format="json")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.data["code"], response.data["code"])

    def test_apply_code(self):
        ReferralCode.objects.create(user=self.referrer, code="WELCOME1")

        response = self.client.post(
            "/monetization/referrals/apply/",
            {"user_id": self.referee.pk, "code": "WELCOME1", "email": "referee@example.com"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["accepted"])
        self.assertEqual(response.data["referrer_id"], self.referrer.pk)
        self.assertEqual(Decimal(response.data["bonus_awarded"]), Decimal("5"))

    def test_apply_invalid_code(self):
        response = self.client.post(
            "/monetization/referrals/apply/",
            {"user_id": self.referee.pk, "code": "NOSUCH"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["reason"], "Invalid referral code")

    def test_stats(self):
        code = ReferralService().create_referral_code(self.referrer.pk).code
        ReferralService().apply_referral_code(self.referee.pk, code.code)

        response = self.client.get(f"/monetization/referrals/{self.referrer.pk}/stats/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total_referrals"], 1)
        self.assertEqual(response.data["active_referrals"], 1)


class StreakAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("alice")

    def test_check_in(self):
        response = self.client.post(f"/monetization/streaks/{self.user.pk}/check-in")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["streak_count"], 1)
        self.assertEqual(Decimal(response.data["bonus"]), Decimal("1"))
        self.assertFalse(response.data["streak_broken"])

        again = self.client.post(f"/monetization/streaks/{self.user.pk}/check-in")
        self.assertEqual(Decimal(again.data["bonus"]), Decimal("0"))

    def test_check_in_unknown_user(self):
        response = self.client.post(f"/monetization/streaks/{self.user.pk + 100}/check-in")
        self.assertEqual(response.status_code, 404)


class AnalyticsAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        creator = make_user("creator")
        self.viewer = make_user("viewer")
        reel = make_reel(creator)
        self.client.post("/monetization/ad-revenue/", ad_payload(reel, self.viewer), format="json")

    def test_stats(self):
        response = self.client.get("/monetization/analytics/ad-revenue/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total_views"], 1)
        self.assertEqual(Decimal(response.data["total_revenue"]), Decimal("1"))

    def test_stats_for_user(self):
        response = self.client.get(f"/monetization/analytics/ad-revenue/?user_id={self.viewer.pk}")
        self.assertEqual(Decimal(response.data["earned_as_viewer"]), Decimal("0.2"))

    def test_bad_date(self):
        response = self.client.get("/monetization/analytics/ad-revenue/?start=yesterday")
        self.assertEqual(response.status_code, 400)

    def test_ledger_untouched_by_reads(self):
        before = LedgerTransaction.objects.count()
        self.client.get("/monetization/analytics/ad-revenue/")
        self.assertEqual(LedgerTransaction.objects.count(), before)
