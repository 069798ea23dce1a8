"""
Depletion prediction from actual usage (sales per the BOM plus recorded loss).
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from costing.services import usage_to_purchase_units
from costing.models import Ingredient
from .base import BaseReportService, DAYS_PLACES, RATE_PLACES
from .loss_service import LossReportService


@dataclass
class DepletionRow:
    ingredient_id: int
    name: str
    current_stock: Decimal  # purchase units
    daily_rate: Decimal  # purchase units per day
    days_remaining: Optional[Decimal]  # None: no consumption, never runs out
    purchase_unit: str


class DepletionService(BaseReportService):

    @classmethod
    def predict(cls, store, window_days=None, threshold_days=None) -> List[DepletionRow]:
        """
        Ingredients expected to run out within ``threshold_days``.

        daily_rate = actual usage over the window / window_days, in purchase
        units. days_remaining = current_stock / daily_rate; None when nothing
        is being used and stock is positive, 0 when both are zero.
        Soonest first.
        """
        window_days = cls._option("depletion_window", window_days)
        threshold_days = Decimal(str(cls._option("depletion_threshold", threshold_days)))

        actual_usage = {
            row.ingredient_id: row.actual_usage
            for row in LossReportService.generate(store, period_days=window_days)
        }

        rows = []
        for ingredient in Ingredient.all_objects.filter(store=store, is_active=True):
            used = actual_usage.get(ingredient.id, Decimal("0"))
            daily_rate = usage_to_purchase_units(used, ingredient.conversion_factor) / window_days
            stock = ingredient.current_stock

            if daily_rate > 0:
                days_remaining = cls._round(stock / daily_rate, DAYS_PLACES)
            elif stock > 0:
                days_remaining = None
            else:
                days_remaining = Decimal("0")

            if days_remaining is None or days_remaining >= threshold_days:
                continue

            rows.append(DepletionRow(
                ingredient_id=ingredient.id,
                name=ingredient.name,
                current_stock=stock,
                daily_rate=cls._round(daily_rate, RATE_PLACES),
                days_remaining=days_remaining,
                purchase_unit=ingredient.purchase_unit,
            ))

        rows.sort(key=lambda row: row.days_remaining)
        return rows
