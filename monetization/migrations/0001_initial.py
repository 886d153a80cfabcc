import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    kwargs.setdefault("default", 0)
    return models.DecimalField(decimal_places=6, max_digits=18, **kwargs)


def timestamps():
    return [
        ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


def pk():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Reel",
            fields=[
                pk(),
                *timestamps(),
                ("caption", models.TextField(blank=True, default="")),
                ("duration", models.PositiveIntegerField(default=0, help_text="Length in seconds.")),
                ("is_active", models.BooleanField(default=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reels",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-created_at"], "abstract": False},
        ),
        migrations.CreateModel(
            name="Wallet",
            fields=[
                pk(),
                *timestamps(),
                ("total_balance", money()),
                ("available_balance", money()),
                ("pending_balance", money()),
                ("total_earned", money()),
                ("total_withdrawn", money()),
                ("ad_earnings", money()),
                ("bonus_earnings", money()),
                ("watch_earnings", money()),
                ("create_earnings", money()),
                ("referral_earnings", money()),
                ("streak_earnings", money()),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="wallet",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("available_balance__gte", 0)),
                        name="wallet_available_balance_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("pending_balance__gte", 0)),
                        name="wallet_pending_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AdRevenueEvent",
            fields=[
                pk(),
                *timestamps(),
                ("ad_provider", models.CharField(max_length=32)),
                (
                    "ad_type",
                    models.CharField(
                        choices=[
                            ("banner", "Banner"),
                            ("interstitial", "Interstitial"),
                            ("rewarded", "Rewarded"),
                            ("native", "Native"),
                        ],
                        max_length=16,
                    ),
                ),
                ("revenue", models.DecimalField(decimal_places=12, default=0, max_digits=24)),
                ("cpm", money()),
                ("view_duration", models.PositiveIntegerField()),
                ("video_duration", models.PositiveIntegerField()),
                ("impression_id", models.CharField(max_length=128)),
                ("is_valid_view", models.BooleanField(default=True)),
                ("timestamp", models.DateTimeField()),
                ("distributed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_ad_revenue_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ad_revenue_events",
                        to="monetization.reel",
                    ),
                ),
                (
                    "viewer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="viewed_ad_revenue_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["ad_provider", "created_at"], name="idx_ad_event_provider"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("reel", "viewer", "impression_id"),
                        name="uq_ad_revenue_event_impression",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RevenueDistribution",
            fields=[
                pk(),
                *timestamps(),
                ("total_revenue", money()),
                ("creator_amount", money()),
                ("creator_percentage", models.DecimalField(decimal_places=4, max_digits=7)),
                ("viewer_amount", money()),
                ("viewer_percentage", models.DecimalField(decimal_places=4, max_digits=7)),
                ("app_amount", money()),
                ("app_percentage", models.DecimalField(decimal_places=4, max_digits=7)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "skipped_parties",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="User ids whose share was not paid because their wallet was missing.",
                    ),
                ),
                (
                    "ad_revenue_event",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="distribution",
                        to="monetization.adrevenueevent",
                    ),
                ),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="creator_distributions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "viewer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="viewer_distributions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-created_at"], "abstract": False},
        ),
        migrations.CreateModel(
            name="LedgerTransaction",
            fields=[
                pk(),
                *timestamps(),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("earning", "Earning"),
                            ("bonus", "Bonus"),
                            ("withdrawal", "Withdrawal"),
                            ("referral", "Referral"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "sub_type",
                    models.CharField(
                        choices=[
                            ("watch", "Watch"),
                            ("create", "Create"),
                            ("ad_revenue", "Ad revenue"),
                            ("referral_signup", "Referral signup"),
                            ("welcome_bonus", "Welcome bonus"),
                            ("referral_revenue", "Referral revenue"),
                            ("daily_streak", "Daily streak"),
                            ("like_bonus", "Like bonus"),
                            ("share_bonus", "Share bonus"),
                            ("withdrawal", "Withdrawal"),
                        ],
                        max_length=24,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=6, max_digits=18)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("referral_processed", models.BooleanField(blank=True, null=True)),
                ("referral_error", models.TextField(blank=True, default="")),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "distribution",
                    models.ForeignKey(
                        blank=True,
                        help_text="Revenue distribution this credit was paid from.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="monetization.revenuedistribution",
                    ),
                ),
                (
                    "reel",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_transactions",
                        to="monetization.reel",
                    ),
                ),
                (
                    "source_transaction",
                    models.ForeignKey(
                        blank=True,
                        help_text="Earning that triggered this referral payout.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="derived_transactions",
                        to="monetization.ledgertransaction",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(
                        fields=["user", "sub_type", "status", "created_at"],
                        name="idx_ledger_daily_cap",
                    ),
                    models.Index(fields=["status", "transaction_type"], name="idx_ledger_status_type"),
                    models.Index(
                        fields=["sub_type", "referral_processed"],
                        name="idx_ledger_referral_pending",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="ledger_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReferralCode",
            fields=[
                pk(),
                *timestamps(),
                ("code", models.CharField(max_length=12, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("exhausted", "Exhausted"), ("expired", "Expired")],
                        default="active",
                        max_length=10,
                    ),
                ),
                ("total_uses", models.PositiveIntegerField(default=0)),
                ("max_uses", models.PositiveIntegerField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral_codes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("user",),
                        name="uq_referral_code_one_active_per_user",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReferralRelationship",
            fields=[
                pk(),
                *timestamps(),
                ("referee_email", models.EmailField(blank=True, default="", max_length=254)),
                ("signup_date", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive"), ("expired", "Expired")],
                        default="active",
                        max_length=10,
                    ),
                ),
                ("total_revenue_shared", money()),
                ("last_revenue_share", models.DateTimeField(blank=True, null=True)),
                ("bonus_paid", models.BooleanField(default=False)),
                (
                    "referee",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_relationship",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "referral_code",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="relationships",
                        to="monetization.referralcode",
                    ),
                ),
                (
                    "referrer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referrals_made",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["referrer", "status"], name="idx_referral_referrer_status"),
                    models.Index(fields=["status", "signup_date"], name="idx_referral_status_signup"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReferralEarning",
            fields=[
                pk(),
                *timestamps(),
                ("amount", money()),
                ("source_revenue", money()),
                ("percentage", models.DecimalField(decimal_places=4, max_digits=7)),
                (
                    "reel",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referral_earnings",
                        to="monetization.reel",
                    ),
                ),
                (
                    "referee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_earnings_generated",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "referrer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_earnings_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "relationship",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="earnings",
                        to="monetization.referralrelationship",
                    ),
                ),
                (
                    "source_transaction",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_payout",
                        to="monetization.ledgertransaction",
                    ),
                ),
                (
                    "transaction",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_earning",
                        to="monetization.ledgertransaction",
                    ),
                ),
            ],
            options={"ordering": ["-created_at"], "abstract": False},
        ),
        migrations.CreateModel(
            name="DailyStreak",
            fields=[
                pk(),
                *timestamps(),
                ("current_streak", models.PositiveIntegerField(default=0)),
                ("max_streak", models.PositiveIntegerField(default=0)),
                ("last_streak_date", models.DateField(blank=True, null=True)),
                ("streak_rewards", money()),
                (
                    "milestones",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text='Streak length -> ISO date first reached, e.g. {"7": "2026-01-07"}.',
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="daily_streak",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-created_at"], "abstract": False},
        ),
        migrations.CreateModel(
            name="AnalyticsEvent",
            fields=[
                pk(),
                *timestamps(),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("ad_view_settled", "Ad view settled"),
                            ("streak_check_in", "Streak check-in"),
                            ("referral_applied", "Referral applied"),
                        ],
                        max_length=32,
                    ),
                ),
                ("payload", models.JSONField(blank=True, default=dict)),
                (
                    "reel",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="analytics_events",
                        to="monetization.reel",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="analytics_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-created_at"], "abstract": False},
        ),
    ]
