from rest_framework import serializers


class WithdrawSerializer(serializers.Serializer):
    """Validates withdrawal requests; the minimum is enforced by the service."""

    amount = serializers.DecimalField(max_digits=18, decimal_places=6)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be positive.")
        return value
