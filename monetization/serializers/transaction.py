from rest_framework import serializers

from monetization.models import LedgerTransaction


class LedgerTransactionSerializer(serializers.ModelSerializer):
    """Read-only serializer for ledger responses."""

    user_id = serializers.IntegerField(read_only=True)
    reel_id = serializers.IntegerField(read_only=True)
    distribution_id = serializers.IntegerField(read_only=True)
    source_transaction_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = LedgerTransaction
        fields = (
            "id",
            "user_id",
            "transaction_type",
            "sub_type",
            "amount",
            "description",
            "status",
            "processed_at",
            "reel_id",
            "distribution_id",
            "source_transaction_id",
            "referral_processed",
            "metadata",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields
