"""
Inventory loss report: recorded loss against what sales should have used.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from costing.services import BOMGraph, purchase_to_usage_units
from .base import BaseReportService, PERCENT_PLACES, RATE_PLACES

logger = logging.getLogger(__name__)


@dataclass
class LossReportRow:
    ingredient_id: int
    name: str
    theoretical_usage: Decimal  # usage units
    loss_usage: Decimal  # usage units
    actual_usage: Decimal  # theoretical + loss, usage units
    loss_quantity: Decimal  # purchase units
    loss_rate: Decimal  # fraction of actual usage
    loss_rate_percent: Decimal
    loss_value: Decimal
    usage_unit: str
    purchase_unit: str


class LossReportService(BaseReportService):

    @classmethod
    def generate(cls, store, period_days=None) -> List[LossReportRow]:
        """
        Per-ingredient loss for the trailing period.

            loss_rate = loss_usage / (theoretical_usage + loss_usage)

        Ingredients with neither theoretical usage nor loss are left out.
        Sorted by loss value (loss quantity x purchase price), highest first.
        """
        period_days = cls._option("loss_days", period_days)
        since = cls._window_start(period_days)

        graph = BOMGraph.for_store(store)
        theoretical = cls._theoretical_usage(store, since, graph).usage
        losses = cls._loss_quantities(store, since)

        rows = []
        for ingredient in graph.ingredients.values():
            theoretical_usage = theoretical.get(ingredient.id, Decimal("0"))
            loss_quantity = losses.get(ingredient.id, Decimal("0"))
            if theoretical_usage == 0 and loss_quantity == 0:
                continue

            loss_usage = purchase_to_usage_units(loss_quantity, ingredient.conversion_factor)
            actual_usage = theoretical_usage + loss_usage
            loss_rate = loss_usage / actual_usage if actual_usage > 0 else Decimal("0")

            rows.append(LossReportRow(
                ingredient_id=ingredient.id,
                name=ingredient.name,
                theoretical_usage=theoretical_usage,
                loss_usage=loss_usage,
                actual_usage=actual_usage,
                loss_quantity=loss_quantity,
                loss_rate=cls._round(loss_rate, RATE_PLACES),
                loss_rate_percent=cls._round(loss_rate * 100, PERCENT_PLACES),
                loss_value=cls._round(loss_quantity * ingredient.purchase_price, PERCENT_PLACES),
                usage_unit=ingredient.usage_unit,
                purchase_unit=ingredient.purchase_unit,
            ))

        rows.sort(key=lambda row: row.loss_value, reverse=True)
        logger.debug(f"Loss report for {store.slug} over {period_days} days: {len(rows)} ingredient(s)")
        return rows
