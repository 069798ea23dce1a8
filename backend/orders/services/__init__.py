"""
Orders services package.

- FulfillmentService: order creation, cancellation, batch production
- SalesAggregateService: per-day revenue/COGS totals
"""

from .fulfillment_service import FulfillmentService, ProductionResult
from .sales_aggregate_service import SalesAggregateService

__all__ = [
    'FulfillmentService',
    'ProductionResult',
    'SalesAggregateService',
]
