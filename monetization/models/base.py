from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing common timestamp fields.

    Every concrete monetization model inherits from this so ledger rows,
    wallets and referral records share the same created_at / updated_at
    bookkeeping.
    """

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


def money_field(**kwargs):
    """DecimalField wide enough for sub-cent revenue shares."""
    kwargs.setdefault("max_digits", 18)
    kwargs.setdefault("decimal_places", 6)
    kwargs.setdefault("default", 0)
    return models.DecimalField(**kwargs)
