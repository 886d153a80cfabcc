from django.contrib import admin

from monetization.models import (
    AdRevenueEvent,
    AnalyticsEvent,
    DailyStreak,
    LedgerTransaction,
    Reel,
    ReferralCode,
    ReferralEarning,
    ReferralRelationship,
    RevenueDistribution,
    Wallet,
)


class ReadOnlyAdminMixin:
    """
    Money-bearing models are browsable but never editable from the admin;
    balances and ledger rows only change through the services.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "user",
        "total_balance",
        "available_balance",
        "pending_balance",
        "total_earned",
        "total_withdrawn",
        "updated_at",
    )
    search_fields = ("user__username", "user__email")


@admin.register(LedgerTransaction)
class LedgerTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "transaction_type",
        "sub_type",
        "amount",
        "status",
        "referral_processed",
        "created_at",
    )
    list_filter = ("transaction_type", "sub_type", "status", "referral_processed")
    search_fields = ("user__username", "description")


@admin.register(AdRevenueEvent)
class AdRevenueEventAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "reel", "viewer", "creator", "ad_provider", "ad_type", "revenue", "distributed_at")
    list_filter = ("ad_provider", "ad_type")
    search_fields = ("impression_id",)


@admin.register(RevenueDistribution)
class RevenueDistributionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "total_revenue",
        "creator",
        "creator_amount",
        "viewer",
        "viewer_amount",
        "app_amount",
        "status",
        "processed_at",
    )
    list_filter = ("status",)


@admin.register(ReferralEarning)
class ReferralEarningAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "referrer", "referee", "amount", "source_revenue", "created_at")


@admin.register(ReferralCode)
class ReferralCodeAdmin(admin.ModelAdmin):
    list_display = ("code", "user", "status", "total_uses", "max_uses", "expires_at")
    list_filter = ("status",)
    search_fields = ("code", "user__username")
    readonly_fields = ("code", "user", "total_uses", "created_at", "updated_at")


@admin.register(ReferralRelationship)
class ReferralRelationshipAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "referrer", "referee", "status", "signup_date", "total_revenue_shared", "bonus_paid")
    list_filter = ("status", "bonus_paid")


@admin.register(DailyStreak)
class DailyStreakAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("user", "current_streak", "max_streak", "last_streak_date", "streak_rewards")


@admin.register(Reel)
class ReelAdmin(admin.ModelAdmin):
    list_display = ("id", "creator", "duration", "is_active", "created_at")
    list_filter = ("is_active",)


@admin.register(AnalyticsEvent)
class AnalyticsEventAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "event_type", "user", "reel", "created_at")
    list_filter = ("event_type",)
