"""
Fulfillment pipeline - order creation, cancellation and batch production.

Each operation is a single UnitOfWork: the BOM resolution, the order rows,
the stock ledger entries and the daily aggregate either all commit or all
roll back.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from django.core.exceptions import ValidationError
from django.utils import timezone

from core_backend.exceptions import EngineError, InvalidArgument, OrderNotFound
from core_backend.infrastructure.unit_of_work import UnitOfWork
from costing.services import (
    BOMGraph,
    BOMResolver,
    quantize_money,
    quantize_quantity,
    usage_to_purchase_units,
)
from inventory.models import AdjustmentType, StockAdjustmentLog
from inventory.services import StockLedgerService
from orders.models import Order, OrderItem
from orders.services.sales_aggregate_service import SalesAggregateService

logger = logging.getLogger(__name__)


@dataclass
class ProductionResult:
    """Outcome of a batch production run."""
    recipe_id: int
    quantity: Decimal
    reference_id: str
    usage: Dict[int, Decimal]  # usage units per ingredient
    total_cost: Decimal
    entries: List[StockAdjustmentLog] = field(default_factory=list)


class FulfillmentService:

    @staticmethod
    def create_order(store, items, sale_date=None, total_amount=None):
        """
        Record a sale and consume its ingredients.

        Args:
            store: Owning store.
            items: [{'recipe_id', 'quantity', 'unit_price'}]. unit_price
                defaults to the recipe's selling price.
            sale_date: Business date (defaults to today in the store's
                timezone). Back-dated sales are stamped at the start of
                that day.
            total_amount: Revenue override (e.g. after a discount). Defaults
                to the sum of quantity x unit_price.

        Returns:
            The created Order.

        Raises:
            InvalidArgument: empty order, non-positive quantity, negative
                price, future sale date.
            RecipeNotFound, IngredientNotFound, GraphError, InsufficientStockError
        """
        lines = FulfillmentService._validate_items(items)

        today = store.local_today()
        sale_date = sale_date or today
        if sale_date > today:
            raise InvalidArgument(f"Sale date {sale_date} is in the future")
        created_at = timezone.now() if sale_date == today else store.start_of_day(sale_date)

        with UnitOfWork("create_order") as uow:
            uow.step("resolve_bom")
            graph = BOMGraph.for_store(store)
            resolver = BOMResolver(store=store, graph=graph)
            resolution = resolver.resolve_many((line['recipe_id'], line['quantity']) for line in lines)

            for line in lines:
                if line['unit_price'] is None:
                    line['unit_price'] = graph.get_recipe(line['recipe_id']).selling_price

            if total_amount is None:
                total_amount = sum(
                    (line['quantity'] * line['unit_price'] for line in lines), Decimal("0")
                )
            total_amount = quantize_money(total_amount)
            total_cost = quantize_money(resolution.total_cost)

            uow.step("persist_order")
            order = Order(
                store=store,
                status=Order.OrderStatus.COMPLETED,
                total_amount=total_amount,
                total_cost=total_cost,
                sale_date=sale_date,
                created_at=created_at,
            )
            order.save()
            OrderItem.objects.bulk_create([
                OrderItem(
                    order=order,
                    recipe_id=line['recipe_id'],
                    quantity=line['quantity'],
                    unit_price=line['unit_price'],
                )
                for line in lines
            ])

            uow.step("apply_stock")
            FulfillmentService._consume(
                store, graph, resolution.usage, AdjustmentType.ORDER,
                reason=f"Order {order.order_number}",
                timestamp=created_at,
                reference_id=order.reference_id,
            )

            uow.step("update_sales_aggregate")
            SalesAggregateService.apply(store, sale_date, total_amount, total_cost, 1)
            uow.on_commit(lambda: logger.info(
                f"Created order {order.order_number} for {store.slug}: revenue {total_amount}, "
                f"cost {total_cost}, {len(resolution.usage)} ingredient(s) consumed"
            ))

        return order

    @staticmethod
    def cancel_order(order_id, store):
        """
        Cancel an order and reverse its stock and sales effects.

        Refund entries negate the 'order' entries actually written for this
        order, so the round trip is exact even if recipes, prices or the
        negative-stock policy changed since the sale.

        Returns:
            True if the order was cancelled, False if it already was.

        Raises:
            OrderNotFound
        """
        order_id = getattr(order_id, 'pk', order_id)

        with UnitOfWork("cancel_order") as uow:
            uow.step("lock_order")
            try:
                # Row lock: concurrent cancels of one order serialize here
                order = Order.all_objects.select_for_update().get(pk=order_id, store=store)
            except (Order.DoesNotExist, ValidationError, ValueError, TypeError):
                raise OrderNotFound(order_id)

            if order.is_cancelled:
                logger.info(f"Order {order.order_number} already cancelled; nothing to do")
                return False

            uow.step("mark_cancelled")
            order.status = Order.OrderStatus.CANCELLED
            order.cancelled_at = timezone.now()
            order.save(update_fields=['status', 'cancelled_at'])

            uow.step("restore_stock")
            consumed = FulfillmentService._consumed_by(order)
            FulfillmentService._warn_if_recipes_changed(store, order, consumed)
            for ingredient_id, quantity in sorted(consumed.items()):
                if quantity == 0:
                    continue
                StockLedgerService.record_adjustment(
                    ingredient_id,
                    -quantity,
                    AdjustmentType.REFUND,
                    reason=f"Cancelled order {order.order_number}",
                    reference_id=order.reference_id,
                    store=store,
                )

            uow.step("update_sales_aggregate")
            SalesAggregateService.apply(store, order.sale_date, -order.total_amount, -order.total_cost, -1)
            uow.on_commit(lambda: logger.info(f"Cancelled order {order.order_number} for {store.slug}"))

        return True

    @staticmethod
    def record_batch_production(store, recipe_id, quantity):
        """
        Consume ingredients for an internal production run of a recipe
        (typically a sub-recipe such as a sauce batch). No sales effects.

        Raises:
            InvalidArgument: quantity <= 0.
            RecipeNotFound, IngredientNotFound, GraphError, InsufficientStockError
        """
        quantity = FulfillmentService._to_positive_decimal(quantity, "Production quantity")

        with UnitOfWork("record_batch_production") as uow:
            uow.step("resolve_bom")
            graph = BOMGraph.for_store(store)
            recipe = graph.get_recipe(recipe_id)
            resolution = BOMResolver(store=store, graph=graph).resolve_usage_and_cost(recipe_id, quantity)
            reference_id = f"production:{recipe_id}:{timezone.now():%Y%m%d%H%M%S%f}"

            uow.step("apply_stock")
            entries = FulfillmentService._consume(
                store, graph, resolution.usage, AdjustmentType.CORRECTION,
                reason=f"Production: {recipe.name} x {quantity}",
                timestamp=None,
                reference_id=reference_id,
            )

        logger.info(
            f"Recorded production of {quantity} x {recipe.name} for {store.slug}: "
            f"cost {quantize_money(resolution.total_cost)}"
        )
        return ProductionResult(
            recipe_id=recipe_id,
            quantity=quantity,
            reference_id=reference_id,
            usage=resolution.usage,
            total_cost=quantize_money(resolution.total_cost),
            entries=entries,
        )

    @staticmethod
    def _consume(store, graph, usage, adjustment_type, reason, timestamp, reference_id):
        """Write one negative ledger entry per ingredient, converted to purchase units."""
        entries = []
        # Fixed order keeps row locks consistent across concurrent orders
        for ingredient_id, used in sorted(usage.items()):
            ingredient = graph.get_ingredient(ingredient_id)
            quantity = quantize_quantity(usage_to_purchase_units(used, ingredient.conversion_factor))
            if quantity == 0:
                logger.debug(f"Skipping {ingredient.name}: {used} {ingredient.usage_unit} rounds to zero")
                continue
            entry = StockLedgerService.record_adjustment(
                ingredient_id,
                -quantity,
                adjustment_type,
                reason=reason,
                timestamp=timestamp,
                reference_id=reference_id,
                store=store,
            )
            if entry is not None:
                entries.append(entry)
        return entries

    @staticmethod
    def _consumed_by(order):
        """Purchase units consumed by an order, replayed from its ledger entries."""
        consumed = defaultdict(Decimal)
        entries = StockAdjustmentLog.all_objects.filter(
            reference_id=order.reference_id,
            adjustment_type=AdjustmentType.ORDER,
        ).values_list('ingredient_id', 'quantity')
        for ingredient_id, quantity in entries:
            # Order entries are negative; consumption is positive
            consumed[ingredient_id] -= quantity
        return dict(consumed)

    @staticmethod
    def _warn_if_recipes_changed(store, order, consumed):
        """Re-resolve the order's items and log when the recipes no longer match the sale."""
        graph = BOMGraph.for_store(store)
        resolver = BOMResolver(store=store, graph=graph)
        try:
            resolution = resolver.resolve_many(
                (item.recipe_id, item.quantity) for item in order.items.all()
            )
        except EngineError as e:
            logger.warning(f"Could not re-resolve order {order.order_number} on cancel: {e}")
            return

        current = {}
        for ingredient_id, used in resolution.usage.items():
            ingredient = graph.ingredients.get(ingredient_id)
            if ingredient is not None:
                current[ingredient_id] = quantize_quantity(
                    usage_to_purchase_units(used, ingredient.conversion_factor)
                )
        current = {key: value for key, value in current.items() if value != 0}

        if current != {key: value for key, value in consumed.items() if value != 0}:
            logger.warning(
                f"Recipes for order {order.order_number} changed since the sale; "
                f"refunding the recorded consumption"
            )

    @staticmethod
    def _validate_items(items):
        if not items:
            raise InvalidArgument("An order needs at least one item")

        lines = []
        for item in items:
            if 'recipe_id' not in item:
                raise InvalidArgument("Order item is missing recipe_id")
            quantity = FulfillmentService._to_positive_decimal(item.get('quantity'), "Order quantity")
            unit_price = item.get('unit_price')
            if unit_price is not None:
                try:
                    unit_price = Decimal(str(unit_price))
                except (ArithmeticError, ValueError, TypeError):
                    raise InvalidArgument(f"Invalid unit price: {unit_price!r}")
                if unit_price < 0:
                    raise InvalidArgument(f"Unit price cannot be negative, got {unit_price}")
            lines.append({'recipe_id': item['recipe_id'], 'quantity': quantity, 'unit_price': unit_price})
        return lines

    @staticmethod
    def _to_positive_decimal(value, label):
        try:
            value = value if isinstance(value, Decimal) else Decimal(str(value))
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidArgument(f"{label} must be a number, got {value!r}")
        if not value.is_finite() or value <= 0:
            raise InvalidArgument(f"{label} must be positive, got {value}")
        return value
