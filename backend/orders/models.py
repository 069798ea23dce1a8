import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.db.models import BigIntegerField, Max
from django.db.models.functions import Cast, Substr
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stores.managers import StoreManager


class Order(models.Model):
    """
    A completed sale. Creating one consumes stock through the ledger and
    adds to the day's sales aggregate; cancelling reverses both.
    """

    class OrderStatus(models.TextChoices):
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='orders'
    )
    order_number = models.CharField(max_length=20, blank=True)
    status = models.CharField(
        max_length=10, choices=OrderStatus.choices, default=OrderStatus.COMPLETED
    )
    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text=_("Revenue")
    )
    total_cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text=_("Material cost (COGS) at the time of sale")
    )
    sale_date = models.DateField(
        help_text=_("Business date of the sale in the store's timezone")
    )
    created_at = models.DateTimeField(default=timezone.now)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = StoreManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["-created_at", "order_number"]
        indexes = [
            models.Index(fields=['store', 'sale_date'], name='order_store_date_idx'),
            models.Index(fields=['store', 'status', 'created_at'], name='order_store_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "order_number"],
                name="unique_order_number_per_store",
            )
        ]

    def __str__(self):
        return f"Order {self.order_number or self.pk} - {self.status}"

    @property
    def reference_id(self):
        """Ledger reference shared by this order's stock entries."""
        return f"order:{self.pk}"

    @property
    def is_cancelled(self):
        return self.status == self.OrderStatus.CANCELLED

    def save(self, *args, **kwargs):
        if self.order_number:
            super().save(*args, **kwargs)
            return

        max_retries = 5
        for _attempt in range(max_retries):
            self.order_number = self._generate_sequential_order_number()
            try:
                # Savepoint so a lost race doesn't poison the surrounding transaction
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                continue
        raise IntegrityError("Failed to generate a unique order number after multiple retries.")

    def _generate_sequential_order_number(self):
        """
        Next sequential order number for this store: ORD-00001, ORD-00002, ...

        The highest number is taken numerically, so ORD-100000 follows ORD-99999.
        """
        prefix = "ORD-"
        highest = (
            Order.all_objects
            .filter(store=self.store, order_number__regex=rf"^{prefix}[0-9]+$")
            .annotate(sequence=Cast(Substr("order_number", len(prefix) + 1), BigIntegerField()))
            .aggregate(highest=Max("sequence"))["highest"]
        )
        next_number = (highest or 0) + 1
        return f"{prefix}{next_number:05d}"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    recipe = models.ForeignKey(
        'costing.Recipe',
        on_delete=models.PROTECT,
        related_name="order_items"
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
    )
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text=_("Price charged per portion")
    )

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity} x {self.recipe_id} in Order {self.order.order_number}"

    @property
    def line_total(self):
        return self.quantity * self.unit_price


class SalesDailyAggregate(models.Model):
    """
    Running revenue and COGS totals per store per business day.

    Only ever changed with relative updates (F expressions) so concurrent
    orders on the same day never lose each other's amounts.
    """
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.CASCADE,
        related_name='daily_sales'
    )
    sales_date = models.DateField()
    daily_revenue = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0"))
    daily_cogs = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0"))
    order_count = models.IntegerField(default=0)
    memo = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StoreManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Daily Sales")
        verbose_name_plural = _("Daily Sales")
        ordering = ['-sales_date']
        constraints = [
            models.UniqueConstraint(fields=['store', 'sales_date'], name='unique_daily_sales_per_store'),
        ]

    def __str__(self):
        return f"{self.store} {self.sales_date}: {self.daily_revenue} revenue / {self.daily_cogs} COGS"

    @property
    def gross_profit(self):
        return self.daily_revenue - self.daily_cogs
