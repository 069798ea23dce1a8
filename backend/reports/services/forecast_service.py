"""
Procurement forecast from recorded consumption.
"""
import math
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from costing.models import Ingredient
from inventory.models import StockAdjustmentLog
from .base import BaseReportService, DAYS_PLACES, RATE_PLACES


@dataclass
class ForecastRow:
    ingredient_id: int
    name: str
    current_stock: Decimal
    safety_stock: Decimal
    average_daily_usage: Decimal  # purchase units per day
    days_remaining: Optional[Decimal]  # None: no recorded usage
    suggested_purchase_quantity: int
    purchase_unit: str


class ForecastService(BaseReportService):

    @classmethod
    def forecast(cls, store, window_days=None, horizon_days=None, threshold_days=None) -> List[ForecastRow]:
        """
        Purchase suggestions for every active ingredient.

        Average daily usage only counts outgoing ledger entries (orders,
        spoilage, loss...). Refunds and purchases do not offset it.

            suggested = ceil(max(0, avg * horizon + safety_stock - stock))

        when days_remaining < threshold, else 0. Sorted by days remaining,
        ingredients without usage last.
        """
        window_days = cls._option("forecast_window", window_days)
        horizon_days = cls._option("forecast_horizon", horizon_days)
        threshold_days = Decimal(str(cls._option("forecast_threshold", threshold_days)))

        consumed = defaultdict(Decimal)
        rows = (
            StockAdjustmentLog.all_objects
            .filter(store=store, quantity__lt=0, created_at__gte=cls._window_start(window_days))
            .values_list('ingredient_id', 'quantity')
        )
        for ingredient_id, quantity in rows:
            consumed[ingredient_id] += -quantity

        forecast = []
        for ingredient in Ingredient.all_objects.filter(store=store, is_active=True).order_by('name'):
            average = consumed.get(ingredient.id, Decimal("0")) / window_days
            stock = ingredient.current_stock

            days_remaining = None
            suggested = 0
            if average > 0:
                days_remaining = cls._round(stock / average, DAYS_PLACES)
                if days_remaining < threshold_days:
                    needed = average * horizon_days + ingredient.safety_stock - stock
                    suggested = math.ceil(max(Decimal("0"), needed))

            forecast.append(ForecastRow(
                ingredient_id=ingredient.id,
                name=ingredient.name,
                current_stock=stock,
                safety_stock=ingredient.safety_stock,
                average_daily_usage=cls._round(average, RATE_PLACES),
                days_remaining=days_remaining,
                suggested_purchase_quantity=suggested,
                purchase_unit=ingredient.purchase_unit,
            ))

        forecast.sort(key=lambda row: (row.days_remaining is None, row.days_remaining or Decimal("0")))
        return forecast
