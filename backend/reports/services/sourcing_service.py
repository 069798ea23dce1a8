"""
Sourcing optimization: compare average purchase prices across suppliers.
"""
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from procurement.models import PurchaseItem
from .base import BaseReportService, PERCENT_PLACES

UNKNOWN_SUPPLIER = "(unknown)"


@dataclass
class SupplierPrice:
    supplier_name: str
    average_price: Decimal
    purchase_count: int


@dataclass
class SourcingRow:
    ingredient_id: int
    name: str
    purchase_unit: str
    best: SupplierPrice
    worst: SupplierPrice
    saving_per_unit: Decimal
    saving_percent: Decimal
    suppliers: List[SupplierPrice]


class SourcingService(BaseReportService):

    @classmethod
    def optimize(cls, store) -> List[SourcingRow]:
        """
        Ingredients bought from two or more suppliers, with the saving from
        always buying at the cheapest supplier's average price.

        saving_per_unit = worst_avg - best_avg
        saving_percent  = round(saving_per_unit / worst_avg * 100)

        Only positive savings, largest saving per unit first.
        """
        items = (
            PurchaseItem.objects
            .filter(purchase__store=store)
            .select_related('ingredient', 'purchase')
        )

        prices = defaultdict(lambda: defaultdict(list))
        ingredients = {}
        for item in items:
            supplier = item.purchase.supplier_name.strip() or UNKNOWN_SUPPLIER
            prices[item.ingredient_id][supplier].append(item.unit_price)
            ingredients[item.ingredient_id] = item.ingredient

        rows = []
        for ingredient_id, by_supplier in prices.items():
            if len(by_supplier) < 2:
                continue

            suppliers = sorted(
                (
                    SupplierPrice(
                        supplier_name=name,
                        average_price=sum(unit_prices, Decimal("0")) / len(unit_prices),
                        purchase_count=len(unit_prices),
                    )
                    for name, unit_prices in by_supplier.items()
                ),
                key=lambda supplier: (supplier.average_price, supplier.supplier_name),
            )
            best, worst = suppliers[0], suppliers[-1]
            saving = worst.average_price - best.average_price
            if saving <= 0:
                continue

            ingredient = ingredients[ingredient_id]
            rows.append(SourcingRow(
                ingredient_id=ingredient_id,
                name=ingredient.name,
                purchase_unit=ingredient.purchase_unit,
                best=best,
                worst=worst,
                saving_per_unit=cls._round(saving, PERCENT_PLACES),
                saving_percent=cls._round(saving / worst.average_price * 100, Decimal("1")),
                suppliers=suppliers,
            ))

        rows.sort(key=lambda row: row.saving_per_unit, reverse=True)
        return rows
