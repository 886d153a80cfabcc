from rest_framework import serializers

from monetization.models import ReferralCode


class CreateReferralCodeSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    custom_code = serializers.CharField(max_length=32, required=False, allow_blank=True)


class ApplyReferralCodeSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    code = serializers.CharField(max_length=32)
    email = serializers.EmailField(required=False, allow_blank=True, default="")


class ReferralCodeSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ReferralCode
        fields = ("code", "user_id", "status", "total_uses", "max_uses", "expires_at", "created_at")
        read_only_fields = fields
