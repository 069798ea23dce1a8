"""
Menu engineering: profitability and popularity per recipe.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from costing.services import BOMGraph, BOMResolver, quantize_money
from .base import BaseReportService, PERCENT_PLACES


class Quadrant:
    STAR = "star"  # popular and profitable
    PLOWHORSE = "plowhorse"  # popular, thin margin
    PUZZLE = "puzzle"  # profitable, rarely ordered
    DOG = "dog"


@dataclass
class MenuPerformanceRow:
    recipe_id: int
    name: str
    category: str
    selling_price: Decimal
    material_cost: Decimal
    margin: Decimal
    margin_rate: Decimal  # percent of selling price
    sales_volume: Decimal
    total_profit: Decimal
    quadrant: str = Quadrant.DOG


class MenuPerformanceService(BaseReportService):

    @classmethod
    def analyze(cls, store, days=30) -> Dict:
        """
        Classify every sellable recipe against the average sales volume and
        average margin of the recipes that sold in the window.

        Returns:
            {'items': [MenuPerformanceRow], 'average_volume', 'average_margin'}
            with items sorted by total profit, highest first.
        """
        graph = BOMGraph.for_store(store)
        resolver = BOMResolver(store=store, graph=graph)
        sold = cls._sold_quantities(store, cls._window_start(days))

        rows = []
        for recipe in graph.recipes.values():
            if recipe.is_sub_recipe or not recipe.is_active:
                continue
            material_cost = quantize_money(resolver.resolve_usage_and_cost(recipe.id, Decimal("1")).total_cost)
            margin = recipe.selling_price - material_cost
            margin_rate = Decimal("0")
            if recipe.selling_price > 0:
                margin_rate = cls._round(margin / recipe.selling_price * 100, PERCENT_PLACES)
            volume = sold.get(recipe.id, Decimal("0"))

            rows.append(MenuPerformanceRow(
                recipe_id=recipe.id,
                name=recipe.name,
                category=recipe.category,
                selling_price=recipe.selling_price,
                material_cost=material_cost,
                margin=margin,
                margin_rate=margin_rate,
                sales_volume=volume,
                total_profit=quantize_money(margin * volume),
            ))

        active = [row for row in rows if row.sales_volume > 0]
        average_volume = Decimal("0")
        average_margin = Decimal("0")
        if active:
            average_volume = sum((row.sales_volume for row in active), Decimal("0")) / len(active)
            average_margin = sum((row.margin for row in active), Decimal("0")) / len(active)

        for row in rows:
            high_volume = row.sales_volume >= average_volume
            high_margin = row.margin >= average_margin
            if high_volume and high_margin:
                row.quadrant = Quadrant.STAR
            elif high_volume:
                row.quadrant = Quadrant.PLOWHORSE
            elif high_margin:
                row.quadrant = Quadrant.PUZZLE
            else:
                row.quadrant = Quadrant.DOG

        rows.sort(key=lambda row: row.total_profit, reverse=True)
        return {
            'items': rows,
            'average_volume': cls._round(average_volume, PERCENT_PLACES),
            'average_margin': quantize_money(average_margin),
        }
