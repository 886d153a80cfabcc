from rest_framework import serializers

from monetization.services.bonus import BONUS_SUB_TYPES


class FixedBonusSerializer(serializers.Serializer):
    """Validates fixed bonus requests."""

    user_id = serializers.IntegerField(min_value=1)
    sub_type = serializers.ChoiceField(choices=[str(choice) for choice in BONUS_SUB_TYPES])
    amount = serializers.DecimalField(max_digits=18, decimal_places=6)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    reel_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
