"""
API tests for order endpoints.
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from costing.models import Ingredient
from orders.models import Order, SalesDailyAggregate
from orders.services import FulfillmentService
from orders.services.sales_aggregate_service import SalesAggregateService


@pytest.mark.django_db
class TestOrdersAPI:

    def test_create_order(self, store_client, burger_set, beef):
        response = store_client.post('/api/orders/', {
            'items': [{'recipe_id': burger_set.id, 'quantity': '2', 'unit_price': '15000'}],
        }, format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'completed'
        assert Decimal(response.data['total_cost']) == Decimal("10000.00")
        assert Decimal(response.data['gross_profit']) == Decimal("20000.00")
        assert response.data['items'][0]['recipe_name'] == 'Burger Set'
        assert Ingredient.all_objects.get(pk=beef.pk).current_stock == Decimal("49.2")

    def test_empty_order_is_400(self, store_client):
        response = store_client.post('/api/orders/', {'items': []}, format='json')

        assert response.status_code == 400

    def test_unknown_recipe_is_404(self, store_client):
        response = store_client.post('/api/orders/', {
            'items': [{'recipe_id': 31337, 'quantity': '1'}],
        }, format='json')

        assert response.status_code == 404
        assert response.data['code'] == 'recipe_not_found'
        assert not Order.all_objects.exists()

    def test_cancel_twice(self, store_client, burger):
        created = store_client.post('/api/orders/', {
            'items': [{'recipe_id': burger.id, 'quantity': '1'}],
        }, format='json')
        order_id = created.data['id']

        first = store_client.post(f'/api/orders/{order_id}/cancel/')
        second = store_client.post(f'/api/orders/{order_id}/cancel/')

        assert first.status_code == 200
        assert first.data['cancelled'] is True
        assert first.data['order']['status'] == 'cancelled'
        assert second.status_code == 200
        assert second.data['cancelled'] is False

    def test_cancel_unknown_order_is_404(self, store_client):
        response = store_client.post('/api/orders/00000000-0000-0000-0000-000000000000/cancel/')

        assert response.status_code == 404
        assert response.data['code'] == 'order_not_found'

    def test_batch_production(self, store_client, burger, beef):
        response = store_client.post('/api/orders/production/', {
            'recipe_id': burger.id, 'quantity': '5',
        }, format='json')

        assert response.status_code == 201
        assert Decimal(response.data['total_cost']) == Decimal("12500.00")
        assert Decimal(response.data['usage'][str(beef.id)]) == Decimal("1000")

    def test_daily_sales(self, store_client, burger):
        for _ in range(2):
            store_client.post('/api/orders/', {
                'items': [{'recipe_id': burger.id, 'quantity': '1'}],
            }, format='json')

        response = store_client.get('/api/orders/sales/')

        assert response.status_code == 200
        assert response.data['summary']['order_count'] == 2
        assert response.data['summary']['total_revenue'] == Decimal("18000.00")
        assert len(response.data['days']) == 1


@pytest.mark.django_db
class TestOrderFilters:

    def test_filter_by_status(self, store_client, store, burger):
        kept = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
        dropped = FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
        FulfillmentService.cancel_order(dropped.id, store)

        response = store_client.get('/api/orders/', {'status': 'cancelled'})

        assert response.status_code == 200
        assert [row['order_number'] for row in response.data] == [dropped.order_number]
        assert kept.order_number not in {row['order_number'] for row in response.data}

    def test_filter_by_sale_date(self, store_client, store, burger):
        FulfillmentService.create_order(store, [{'recipe_id': burger.id, 'quantity': 1}])
        today = store.local_today()

        same_day = store_client.get('/api/orders/', {'sale_date': today.isoformat()})
        earlier = store_client.get('/api/orders/', {
            'sale_date_before': (today - timedelta(days=1)).isoformat(),
        })

        assert len(same_day.data) == 1
        assert earlier.data == []

    @pytest.mark.parametrize("params", [
        {'sale_date': 'not-a-date'},
        {'sale_date_after': '2024-02-30'},
        {'status': 'refunded'},
    ])
    def test_malformed_filter_is_400(self, store_client, params):
        response = store_client.get('/api/orders/', params)

        assert response.status_code == 400
        assert set(params) <= set(response.data)


@pytest.mark.django_db
class TestDailySalesAPI:

    def test_date_range(self, store_client, store):
        today = store.local_today()
        SalesAggregateService.record_manual(store, today - timedelta(days=5), daily_revenue="100")
        SalesAggregateService.record_manual(store, today, daily_revenue="200")

        response = store_client.get('/api/orders/sales/', {
            'start_date': (today - timedelta(days=1)).isoformat(),
        })

        assert response.status_code == 200
        assert [row['sales_date'] for row in response.data['days']] == [today.isoformat()]

    def test_malformed_date_is_400(self, store_client):
        response = store_client.get('/api/orders/sales/', {'start_date': '2024-13-99'})

        assert response.status_code == 400
        assert 'start_date' in response.data

    def test_manual_entry_keeps_cogs(self, store_client, store, burger):
        store_client.post('/api/orders/', {
            'items': [{'recipe_id': burger.id, 'quantity': '1'}],
        }, format='json')

        response = store_client.put('/api/orders/sales/', {
            'sales_date': store.local_today().isoformat(),
            'daily_revenue': '9500',
            'memo': 'tips included',
        }, format='json')

        assert response.status_code == 200
        assert Decimal(response.data['daily_revenue']) == Decimal("9500.00")
        assert Decimal(response.data['daily_cogs']) == Decimal("2500.00")
        assert response.data['order_count'] == 1
        assert response.data['memo'] == 'tips included'

    def test_manual_entry_for_future_date_is_400(self, store_client, store):
        response = store_client.put('/api/orders/sales/', {
            'sales_date': (store.local_today() + timedelta(days=1)).isoformat(),
            'daily_revenue': '100',
        }, format='json')

        assert response.status_code == 400
        assert not SalesDailyAggregate.all_objects.exists()

    def test_manual_entry_negative_revenue_is_400(self, store_client, store):
        response = store_client.put('/api/orders/sales/', {
            'sales_date': store.local_today().isoformat(),
            'daily_revenue': '-5',
        }, format='json')

        assert response.status_code == 400
