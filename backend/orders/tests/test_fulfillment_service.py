"""
Tests for FulfillmentService.
"""
import logging
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import OperationalError

from core_backend.exceptions import (
    InsufficientStockError,
    InvalidArgument,
    OrderNotFound,
    RecipeNotFound,
    Unavailable,
)
from core_backend.tests.fixtures import add_component
from costing.exceptions import CyclicRecipeError
from costing.models import Ingredient
from inventory.models import AdjustmentType, StockAdjustmentLog
from inventory.services import StockLedgerService
from orders.models import Order, SalesDailyAggregate
from orders.services import FulfillmentService
from orders.services.sales_aggregate_service import SalesAggregateService


def stock(ingredient):
    return Ingredient.all_objects.get(pk=ingredient.pk).current_stock


def aggregate_for(store, day):
    return SalesDailyAggregate.all_objects.filter(store=store, sales_date=day).first()


@pytest.mark.django_db
class TestCreateOrder:

    def test_order_consumes_stock_and_records_sale(self, store, burger_set, beef, bun):
        order = FulfillmentService.create_order(store, [
            {'recipe_id': burger_set.id, 'quantity': 1, 'unit_price': '15000'},
        ])

        assert order.status == Order.OrderStatus.COMPLETED
        assert order.order_number == "ORD-00001"
        assert order.total_amount == Decimal("15000.00")
        # 400 g beef (4000) + 2 buns (1000)
        assert order.total_cost == Decimal("5000.00")

        # 400 g = 0.4 kg
        assert stock(beef) == Decimal("49.6")
        assert stock(bun) == Decimal("98")

        aggregate = aggregate_for(store, order.sale_date)
        assert aggregate.daily_revenue == Decimal("15000.00")
        assert aggregate.daily_cogs == Decimal("5000.00")
        assert aggregate.order_count == 1

    def test_ledger_entries_reference_the_order(self, store, burger, beef, bun):
        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 2}])

        entries = StockAdjustmentLog.all_objects.filter(reference_id=order.reference_id)
        assert {entry.ingredient_id: entry.quantity for entry in entries} == {
            beef.id: Decimal("-0.4"),
            bun.id: Decimal("-2"),
        }
        assert all(entry.adjustment_type == AdjustmentType.ORDER for entry in entries)
        assert StockLedgerService.find_drift(store) == []

    def test_unit_price_defaults_to_selling_price(self, store, burger):
        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 2}])

        assert order.total_amount == Decimal("18000.00")
        assert order.items.get().unit_price == Decimal("9000")

    def test_total_amount_override(self, store, burger):
        order = FulfillmentService.create_order(
            store, [{'recipe_id': burger.id, 'quantity': 1}], total_amount=Decimal("8000")
        )

        assert order.total_amount == Decimal("8000.00")

    def test_orders_on_same_day_accumulate(self, store, burger):
        FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
        second = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert second.order_number == "ORD-00002"
        aggregate = aggregate_for(store, second.sale_date)
        assert aggregate.order_count == 2
        assert aggregate.daily_revenue == Decimal("18000.00")
        assert aggregate.daily_cogs == Decimal("5000.00")

    def test_backdated_sale(self, store, burger, beef):
        day = store.local_today() - timedelta(days=2)

        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}], sale_date=day)

        assert order.sale_date == day
        assert order.created_at == store.start_of_day(day)
        entry = StockAdjustmentLog.all_objects.get(reference_id=order.reference_id, ingredient=beef)
        assert entry.created_at == store.start_of_day(day)
        assert aggregate_for(store, day).order_count == 1

    def test_future_sale_date_rejected(self, store, burger):
        with pytest.raises(InvalidArgument):
            FulfillmentService.create_order(
                store, [{'recipe_id': burger.id, 'quantity': 1}],
                sale_date=store.local_today() + timedelta(days=1),
            )

    def test_tiny_usage_is_skipped(self, store, make_ingredient, make_recipe):
        salt = make_ingredient('Salt', purchase_price='1000', conversion_factor='1000000',
                               usage_unit='mg', current_stock='1')
        dish = make_recipe('Seasoned Dish', [(salt, '1')], selling_price='100')

        order = FulfillmentService.create_order(store, [{'recipe_id': dish.id, 'quantity': 1}])

        assert not StockAdjustmentLog.all_objects.filter(reference_id=order.reference_id).exists()
        assert stock(salt) == Decimal("1")

    @pytest.mark.parametrize("items", [
        [],
        [{'recipe_id': 1, 'quantity': 0}],
        [{'recipe_id': 1, 'quantity': -1}],
        [{'recipe_id': 1, 'quantity': 'two'}],
        [{'quantity': 1}],
    ])
    def test_invalid_items(self, store, items):
        with pytest.raises(InvalidArgument):
            FulfillmentService.create_order(store, items)

    def test_negative_price(self, store, burger):
        with pytest.raises(InvalidArgument):
            FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1, 'unit_price': -5}])


@pytest.mark.django_db
class TestCreateOrderAtomicity:

    def test_unknown_recipe_writes_nothing(self, store, burger, beef):
        with pytest.raises(RecipeNotFound):
            FulfillmentService.create_order(store, [
                {'recipe_id': burger.id, 'quantity': 1},
                {'recipe_id': 424242, 'quantity': 1},
            ])

        assert not Order.all_objects.exists()
        assert stock(beef) == Decimal("50")
        assert not SalesDailyAggregate.all_objects.exists()

    def test_cyclic_recipe_writes_nothing(self, store, beef, make_recipe):
        loop = make_recipe('Loop', [(beef, '10')])
        add_component(loop, loop, '1')

        with pytest.raises(CyclicRecipeError):
            FulfillmentService.create_order(store, [{'recipe_id': loop.id, 'quantity': 1}])

        assert not Order.all_objects.exists()

    def test_rejected_stock_rolls_back_order(self, store, burger, beef, bun):
        store.negative_stock_policy = 'reject'
        store.save()

        with pytest.raises(InsufficientStockError):
            FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 500}])

        assert not Order.all_objects.exists()
        assert not StockAdjustmentLog.all_objects.filter(adjustment_type=AdjustmentType.ORDER).exists()
        assert stock(beef) == Decimal("50")
        assert stock(bun) == Decimal("100")

    def test_aggregate_failure_rolls_back_stock(self, store, burger, beef):
        with mock.patch.object(
            SalesAggregateService, 'apply', side_effect=OperationalError("connection lost")
        ):
            with pytest.raises(Unavailable) as exc_info:
                FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert exc_info.value.retryable is True
        assert 'update_sales_aggregate' in str(exc_info.value)
        assert not Order.all_objects.exists()
        assert stock(beef) == Decimal("50")
        assert StockLedgerService.find_drift(store) == []


@pytest.mark.django_db
class TestOrderNumbering:

    def test_numbers_continue_past_five_digits(self, store, burger):
        Order.all_objects.create(
            store=store, order_number="ORD-99999", sale_date=store.local_today()
        )

        first = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
        second = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert first.order_number == "ORD-100000"
        assert second.order_number == "ORD-100001"

    def test_sequence_is_per_store(self, store, store_b, burger):
        Order.all_objects.create(
            store=store_b, order_number="ORD-00041", sale_date=store_b.local_today()
        )

        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert order.order_number == "ORD-00001"

    def test_non_sequential_numbers_are_ignored(self, store, burger):
        Order.all_objects.create(
            store=store, order_number="ORD-7A", sale_date=store.local_today()
        )

        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert order.order_number == "ORD-00001"


@pytest.mark.django_db
class TestCompletionLogging:

    def test_created_order_logged_after_commit(
        self, store, burger, caplog, django_capture_on_commit_callbacks
    ):
        caplog.set_level(logging.INFO, logger="orders.services.fulfillment_service")

        with django_capture_on_commit_callbacks() as callbacks:
            order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
            assert f"Created order {order.order_number}" not in caplog.text

        assert len(callbacks) == 1
        callbacks[0]()
        assert f"Created order {order.order_number}" in caplog.text

    def test_rolled_back_order_is_not_logged(
        self, store, burger, caplog, django_capture_on_commit_callbacks
    ):
        caplog.set_level(logging.INFO, logger="orders.services.fulfillment_service")

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with mock.patch.object(
                SalesAggregateService, 'apply', side_effect=OperationalError("connection lost")
            ):
                with pytest.raises(Unavailable):
                    FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert callbacks == []
        assert "Created order" not in caplog.text


@pytest.mark.django_db
class TestCancelOrder:

    def test_cancel_round_trip(self, store, burger_set, beef, bun):
        day = store.local_today()
        before_beef, before_bun = stock(beef), stock(bun)
        baseline = FulfillmentService.create_order(store, [{'recipe_id': burger_set.id, 'quantity': 1}])
        before_aggregate = aggregate_for(store, day)
        revenue, cogs, count = (
            before_aggregate.daily_revenue, before_aggregate.daily_cogs, before_aggregate.order_count
        )

        order = FulfillmentService.create_order(store, [{'recipe_id': burger_set.id, 'quantity': 3}])
        assert FulfillmentService.cancel_order(order.id, store) is True

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.CANCELLED
        assert order.cancelled_at is not None
        assert stock(beef) == before_beef - Decimal("0.4")
        assert stock(bun) == before_bun - Decimal("2")

        after = aggregate_for(store, day)
        assert (after.daily_revenue, after.daily_cogs, after.order_count) == (revenue, cogs, count)
        assert baseline.status == Order.OrderStatus.COMPLETED
        assert StockLedgerService.find_drift(store) == []

    def test_cancel_is_idempotent(self, store, burger, beef):
        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        assert FulfillmentService.cancel_order(order, store) is True
        assert FulfillmentService.cancel_order(order, store) is False

        refunds = StockAdjustmentLog.all_objects.filter(
            reference_id=order.reference_id, adjustment_type=AdjustmentType.REFUND
        )
        assert refunds.count() == 2
        assert stock(beef) == Decimal("50")
        assert aggregate_for(store, order.sale_date).order_count == 0

    def test_refund_uses_recorded_consumption(self, store, burger, beef):
        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
        # Recipe edited after the sale
        burger.components.filter(ingredient=beef).update(quantity=Decimal("999"))

        FulfillmentService.cancel_order(order.id, store)

        refund = StockAdjustmentLog.all_objects.get(
            reference_id=order.reference_id, adjustment_type=AdjustmentType.REFUND, ingredient=beef
        )
        assert refund.quantity == Decimal("0.2")
        assert stock(beef) == Decimal("50")

    def test_cancel_backdated_order_restores_that_day(self, store, burger):
        day = store.local_today() - timedelta(days=5)
        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}], sale_date=day)

        FulfillmentService.cancel_order(order.id, store)

        aggregate = aggregate_for(store, day)
        assert aggregate.daily_revenue == Decimal("0")
        assert aggregate.daily_cogs == Decimal("0")

    def test_unknown_order(self, store):
        with pytest.raises(OrderNotFound):
            FulfillmentService.cancel_order("00000000-0000-0000-0000-000000000000", store)

    def test_malformed_order_id(self, store):
        with pytest.raises(OrderNotFound):
            FulfillmentService.cancel_order("not-a-uuid", store)

    def test_other_store_order_not_found(self, store, store_b, burger):
        order = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])

        with pytest.raises(OrderNotFound):
            FulfillmentService.cancel_order(order.id, store_b)


@pytest.mark.django_db
class TestBatchProduction:

    def test_production_consumes_without_sales(self, store, make_ingredient, make_recipe):
        tomato = make_ingredient('Tomato', purchase_price='2000', conversion_factor='1000', current_stock='10')
        sauce = make_recipe('Tomato Sauce', [(tomato, '250')], is_sub_recipe=True)

        result = FulfillmentService.record_batch_production(store, sauce.id, Decimal("8"))

        assert result.usage == {tomato.id: Decimal("2000")}
        assert result.total_cost == Decimal("4000.00")
        assert len(result.entries) == 1
        assert result.entries[0].adjustment_type == AdjustmentType.CORRECTION
        assert result.entries[0].quantity == Decimal("-2")
        assert stock(tomato) == Decimal("8")
        assert not Order.all_objects.exists()
        assert not SalesDailyAggregate.all_objects.exists()

    def test_production_rejects_non_positive_quantity(self, store, burger):
        with pytest.raises(InvalidArgument):
            FulfillmentService.record_batch_production(store, burger.id, 0)

    def test_production_unknown_recipe(self, store):
        with pytest.raises(RecipeNotFound):
            FulfillmentService.record_batch_production(store, 777777, 1)
