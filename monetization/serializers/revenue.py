from rest_framework import serializers

from monetization.models import AdRevenueEvent, RevenueDistribution


class AdRevenueEventSerializer(serializers.Serializer):
    """
    Validates the shape of an ad impression report.

    Eligibility (watch time, revenue, duplicates) is decided by the service,
    which reports it as accepted/reason rather than as field errors.
    """

    reel_id = serializers.IntegerField(min_value=1)
    viewer_id = serializers.IntegerField(min_value=1)
    ad_provider = serializers.CharField(max_length=32, allow_blank=True)
    ad_type = serializers.ChoiceField(choices=AdRevenueEvent.AdType.choices)
    revenue = serializers.DecimalField(max_digits=24, decimal_places=12)
    cpm = serializers.DecimalField(max_digits=18, decimal_places=6, required=False, default=0)
    view_duration = serializers.IntegerField(min_value=0)
    video_duration = serializers.IntegerField(min_value=0)
    impression_id = serializers.CharField(max_length=128)
    timestamp = serializers.DateTimeField(required=False)


class RevenueDistributionSerializer(serializers.ModelSerializer):
    ad_revenue_event_id = serializers.IntegerField(read_only=True)
    creator_id = serializers.IntegerField(read_only=True)
    viewer_id = serializers.IntegerField(read_only=True)
    impression_id = serializers.CharField(source="ad_revenue_event.impression_id", read_only=True)

    class Meta:
        model = RevenueDistribution
        fields = (
            "id",
            "ad_revenue_event_id",
            "impression_id",
            "total_revenue",
            "creator_id",
            "creator_amount",
            "creator_percentage",
            "viewer_id",
            "viewer_amount",
            "viewer_percentage",
            "app_amount",
            "app_percentage",
            "status",
            "processed_at",
            "skipped_parties",
        )
        read_only_fields = fields
