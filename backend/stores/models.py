import uuid
from datetime import datetime, time

import pytz
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class NegativeStockPolicy(models.TextChoices):
    """How the ledger treats a decrement that would take stock below zero."""
    ALLOW = "allow", _("Allow negative stock")
    REJECT = "reject", _("Reject the adjustment")
    CLAMP = "clamp", _("Clamp at zero")


class Store(models.Model):
    """
    Root entity for data ownership.
    Every ingredient, recipe, ledger entry, order and purchase belongs to a store.

    Daily sales aggregates are keyed by (store, date), so a store is the
    "owner" of its sales history as well as of its inventory.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=255,
        help_text=_("Display name for the store (e.g., Corner Bakery)")
    )
    slug = models.SlugField(
        unique=True,
        help_text=_("URL-safe identifier used to select the store in API requests")
    )
    timezone = models.CharField(
        max_length=64,
        default="UTC",
        help_text=_("IANA timezone used for sales dates and report windows")
    )
    negative_stock_policy = models.CharField(
        max_length=10,
        choices=NegativeStockPolicy.choices,
        blank=True,
        help_text=_("Overrides INVENTORY_NEGATIVE_STOCK_POLICY for this store. Blank uses the global setting.")
    )
    is_active = models.BooleanField(
        default=True,
        help_text=_("Inactive stores cannot access the system")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stores'
        ordering = ['name']
        indexes = [
            models.Index(fields=['slug']),
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return self.name

    @property
    def effective_negative_stock_policy(self):
        """Store override, falling back to the global setting."""
        if self.negative_stock_policy:
            return self.negative_stock_policy

        from django.conf import settings
        return getattr(settings, 'INVENTORY_NEGATIVE_STOCK_POLICY', NegativeStockPolicy.ALLOW)

    def get_timezone(self):
        """The store's timezone, UTC if the name is not recognised."""
        try:
            return pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            return pytz.UTC

    def local_now(self):
        return timezone.now().astimezone(self.get_timezone())

    def local_today(self):
        return self.local_now().date()

    def local_date(self, dt):
        """Calendar date of an aware datetime in the store's timezone."""
        return dt.astimezone(self.get_timezone()).date()

    def start_of_day(self, day):
        """Aware datetime for local midnight at the start of ``day``."""
        return self.get_timezone().localize(datetime.combine(day, time.min))
