from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stores.managers import StoreManager
from inventory.exceptions import ImmutableLedgerEntryError


class AdjustmentType(models.TextChoices):
    PURCHASE = "purchase", _("Purchase")
    SPOILAGE = "spoilage", _("Spoilage")
    CORRECTION = "correction", _("Correction")
    ORDER = "order", _("Order Deduction")
    REFUND = "refund", _("Order Refund")
    LOSS = "loss", _("Loss")
    DISCARD = "discard", _("Discard")


# Entry types counted as actual loss by the loss report
LOSS_ADJUSTMENT_TYPES = (AdjustmentType.LOSS, AdjustmentType.DISCARD)


class LedgerQuerySet(models.QuerySet):
    """Bulk edits would bypass the append-only rule, so they are refused."""

    def update(self, **kwargs):
        raise ImmutableLedgerEntryError()

    def delete(self):
        raise ImmutableLedgerEntryError()


class StockAdjustmentLog(models.Model):
    """
    One immutable entry of the stock ledger.

    ``quantity`` is signed and in the ingredient's purchase unit. The sum of
    all entries for an ingredient is its true stock; Ingredient.current_stock
    is a cache of that sum.
    """
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='stock_adjustments'
    )
    ingredient = models.ForeignKey(
        'costing.Ingredient',
        on_delete=models.PROTECT,
        related_name='adjustments',
    )
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        help_text=_("Signed change in purchase units (positive adds stock)")
    )
    adjustment_type = models.CharField(
        max_length=20,
        choices=AdjustmentType.choices,
    )
    reason = models.CharField(max_length=255, blank=True)
    reference_id = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text=_("Links the entries of one order, purchase or production run")
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text=_("When the movement happened; earlier than insert time for back-dated sales")
    )

    objects = StoreManager.from_queryset(LedgerQuerySet)()
    all_objects = models.Manager.from_queryset(LedgerQuerySet)()

    class Meta:
        verbose_name = _("Stock Adjustment")
        verbose_name_plural = _("Stock Adjustments")
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['store', 'ingredient', 'created_at'], name='stock_adj_store_ingr_time_idx'),
            models.Index(fields=['store', 'adjustment_type', 'created_at'], name='stock_adj_store_type_time_idx'),
        ]

    def __str__(self):
        return f"{self.adjustment_type}: {self.ingredient_id} ({self.quantity:+}) - {self.created_at:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableLedgerEntryError()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableLedgerEntryError()
