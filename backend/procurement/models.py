from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from stores.managers import StoreManager


class Purchase(models.Model):
    """
    A supplier invoice. Each line adds stock through the ledger and is a
    price data point for sourcing optimization.
    """
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='purchases'
    )
    supplier_name = models.CharField(max_length=200, blank=True)
    purchase_date = models.DateField()
    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text=_("Sum of quantity x unit price over all lines")
    )
    memo = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = StoreManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Purchase")
        verbose_name_plural = _("Purchases")
        ordering = ['-purchase_date', '-id']
        indexes = [
            models.Index(fields=['store', 'purchase_date']),
        ]

    def __str__(self):
        return f"Purchase #{self.pk} from {self.supplier_name or 'unknown supplier'} on {self.purchase_date}"

    @property
    def reference_id(self):
        """Ledger reference shared by this purchase's stock entries."""
        return f"purchase:{self.pk}"


class PurchaseItem(models.Model):
    purchase = models.ForeignKey(
        Purchase,
        on_delete=models.CASCADE,
        related_name='items'
    )
    ingredient = models.ForeignKey(
        'costing.Ingredient',
        on_delete=models.PROTECT,
        related_name='purchase_items'
    )
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
        help_text=_("Purchase units received")
    )
    unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Price paid per purchase unit")
    )

    class Meta:
        verbose_name = _("Purchase Item")
        verbose_name_plural = _("Purchase Items")
        indexes = [
            models.Index(fields=['ingredient']),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.ingredient} @ {self.unit_price}"

    @property
    def line_total(self):
        return self.quantity * self.unit_price
