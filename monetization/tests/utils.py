from decimal import Decimal

from django.contrib.auth import get_user_model

from monetization.models import LedgerTransaction, Reel
from monetization.services import Credit, WalletService


def make_user(username):
    """Create an account; the post_save signal gives it a wallet."""
    return get_user_model().objects.create_user(username=username, email=f"{username}@example.com")


def make_reel(creator, duration=60):
    return Reel.objects.create(creator=creator, caption="test reel", duration=duration)


def fund_wallet(user, amount):
    """Credit a plain watch earning so withdrawals have something to draw on."""
    return WalletService.commit_credits(
        [
            Credit(
                user_id=user.pk,
                amount=Decimal(str(amount)),
                transaction_type=LedgerTransaction.TransactionType.EARNING,
                sub_type=LedgerTransaction.SubType.WATCH,
                description="Watch earnings",
            )
        ],
        require_all=True,
    ).transactions[0]


def ad_view(reel, viewer, impression_id="imp-1", revenue="1.00", view_duration=45, video_duration=60):
    return {
        "reel_id": reel.pk,
        "viewer_id": viewer.pk,
        "ad_provider": "admob",
        "ad_type": "rewarded",
        "revenue": Decimal(revenue),
        "cpm": Decimal("2.50"),
        "view_duration": view_duration,
        "video_duration": video_duration,
        "impression_id": impression_id,
    }
