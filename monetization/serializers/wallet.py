from rest_framework import serializers

from monetization.models import Wallet


class WalletSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    last_updated = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Wallet
        fields = (
            "user_id",
            "total_balance",
            "available_balance",
            "pending_balance",
            "total_earned",
            "total_withdrawn",
            "ad_earnings",
            "bonus_earnings",
            "watch_earnings",
            "create_earnings",
            "referral_earnings",
            "streak_earnings",
            "created_at",
            "last_updated",
        )
        read_only_fields = fields
