"""
Costing services.

- unit_cost: purchase-unit price -> loss-adjusted cost per usage unit
- bom_resolver: recursive usage and cost resolution over the recipe graph
"""
from costing.services.unit_cost import (
    cost_per_usage_unit,
    usage_to_purchase_units,
    purchase_to_usage_units,
    quantize_quantity,
    quantize_money,
)
from costing.services.bom_resolver import (
    BOMGraph,
    BOMResolver,
    BOMResolution,
    IngredientCostLine,
    RecipeCostBreakdown,
)

__all__ = [
    'cost_per_usage_unit',
    'usage_to_purchase_units',
    'purchase_to_usage_units',
    'quantize_quantity',
    'quantize_money',
    'BOMGraph',
    'BOMResolver',
    'BOMResolution',
    'IngredientCostLine',
    'RecipeCostBreakdown',
]
