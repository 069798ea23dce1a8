"""
Shared building blocks for the analytics reports.

Every report takes the store explicitly, loads what it needs once into
keyed maps, and works in Decimal throughout.
"""
import logging
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from costing.services import BOMGraph, BOMResolution, BOMResolver
from inventory.models import LOSS_ADJUSTMENT_TYPES, StockAdjustmentLog
from orders.models import Order, OrderItem

logger = logging.getLogger(__name__)

RATE_PLACES = Decimal("0.0001")
PERCENT_PLACES = Decimal("0.01")
DAYS_PLACES = Decimal("0.01")


class BaseReportService:
    """Base class for analytics report services with common queries."""

    # (setting name, default) per report option
    DEFAULTS = {
        "loss_days": ("ANALYTICS_LOSS_REPORT_DAYS", 30),
        "depletion_window": ("ANALYTICS_DEPLETION_WINDOW_DAYS", 14),
        "depletion_threshold": ("ANALYTICS_DEPLETION_THRESHOLD_DAYS", 7),
        "forecast_window": ("ANALYTICS_FORECAST_WINDOW_DAYS", 30),
        "forecast_horizon": ("ANALYTICS_FORECAST_HORIZON_DAYS", 14),
        "forecast_threshold": ("ANALYTICS_FORECAST_THRESHOLD_DAYS", 7),
    }

    @classmethod
    def _option(cls, key, value=None):
        """Explicit value, else the Django setting, else the built-in default."""
        if value is not None:
            return value
        setting_name, default = cls.DEFAULTS[key]
        return getattr(settings, setting_name, default)

    @staticmethod
    def _window_start(days):
        """Start of a trailing window of ``days`` days ending now."""
        return timezone.now() - timedelta(days=days)

    @staticmethod
    def _sold_quantities(store, since):
        """
        Portions sold per recipe since ``since``, cancelled orders excluded.

        Returns:
            {recipe_id: Decimal}
        """
        rows = (
            OrderItem.objects
            .filter(order__store=store, order__created_at__gte=since)
            .exclude(order__status=Order.OrderStatus.CANCELLED)
            .values('recipe_id')
            .annotate(total=Sum('quantity'))
        )
        return {row['recipe_id']: row['total'] for row in rows}

    @staticmethod
    def _theoretical_usage(store, since, graph=None):
        """What the sales since ``since`` should have consumed, per the BOM."""
        graph = graph or BOMGraph.for_store(store)
        sold = BaseReportService._sold_quantities(store, since)
        if not sold:
            return BOMResolution()
        return BOMResolver(store=store, graph=graph).resolve_many(sold.items())

    @staticmethod
    def _loss_quantities(store, since):
        """Recorded loss/discard per ingredient since ``since``, as positive purchase units."""
        losses = defaultdict(Decimal)
        rows = (
            StockAdjustmentLog.all_objects
            .filter(store=store, adjustment_type__in=LOSS_ADJUSTMENT_TYPES, created_at__gte=since)
            .values_list('ingredient_id', 'quantity')
        )
        for ingredient_id, quantity in rows:
            losses[ingredient_id] += abs(quantity)
        return dict(losses)

    @staticmethod
    def _round(value, places):
        return value.quantize(places, rounding=ROUND_HALF_UP)
