"""
API tests for the stock ledger endpoints.
"""
import pytest
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError

from costing.models import Ingredient
from inventory.models import StockAdjustmentLog


@pytest.mark.django_db
class TestStockAdjustmentAPI:

    def test_manual_adjustment(self, store_client, beef):
        response = store_client.post('/api/inventory/adjustments/', {
            'ingredient_id': beef.id,
            'quantity': '-1.5',
            'adjustment_type': 'spoilage',
            'reason': 'Left out overnight',
        }, format='json')

        assert response.status_code == 201
        assert response.data['adjustment_type'] == 'spoilage'
        assert Decimal(response.data['quantity']) == Decimal("-1.5")
        assert Ingredient.all_objects.get(pk=beef.pk).current_stock == Decimal("48.5")

    def test_zero_quantity_rejected(self, store_client, beef):
        response = store_client.post('/api/inventory/adjustments/', {
            'ingredient_id': beef.id, 'quantity': '0', 'adjustment_type': 'correction',
        }, format='json')

        assert response.status_code == 400

    def test_unknown_ingredient_is_404(self, store_client):
        response = store_client.post('/api/inventory/adjustments/', {
            'ingredient_id': 999999, 'quantity': '1', 'adjustment_type': 'purchase',
        }, format='json')

        assert response.status_code == 404
        assert response.data['code'] == 'ingredient_not_found'

    def test_reject_policy_is_400(self, store_client, store, make_ingredient):
        cream = make_ingredient('Cream', current_stock='1')
        store.negative_stock_policy = 'reject'
        store.save()

        response = store_client.post('/api/inventory/adjustments/', {
            'ingredient_id': cream.id, 'quantity': '-2', 'adjustment_type': 'order',
        }, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'insufficient_stock'
        assert response.data['retryable'] is False

    def test_unknown_store_header(self, api_client):
        response = api_client.get('/api/inventory/valuation/', HTTP_X_STORE='no-such-store')

        assert response.status_code == 400
        assert response.json()['code'] == 'STORE_NOT_FOUND'


@pytest.mark.django_db
class TestStockHistoryAPI:

    def test_history_filtered_by_ingredient(self, store_client, beef, bun):
        response = store_client.get('/api/inventory/history/', {'ingredient': bun.id})

        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['results'][0]['ingredient_name'] == 'Brioche Bun'

    def test_history_is_store_scoped(self, api_client, store_b, beef):
        response = api_client.get('/api/inventory/history/', HTTP_X_STORE_ID=str(store_b.id))

        assert response.status_code == 200
        assert response.data['count'] == 0


@pytest.mark.django_db
class TestRebuildAPI:

    def test_dry_run_reports_without_fixing(self, store_client, beef):
        Ingredient.all_objects.filter(pk=beef.pk).update(current_stock=Decimal("1"))

        response = store_client.post('/api/inventory/rebuild/', {'dry_run': True}, format='json')

        assert response.status_code == 200
        assert len(response.data['corrections']) == 1
        assert Ingredient.all_objects.get(pk=beef.pk).current_stock == Decimal("1")

    def test_rebuild(self, store_client, beef):
        Ingredient.all_objects.filter(pk=beef.pk).update(current_stock=Decimal("1"))

        response = store_client.post('/api/inventory/rebuild/', {}, format='json')

        assert response.status_code == 200
        assert Decimal(response.data['corrections'][0]['ledger_stock']) == Decimal("50")
        assert Ingredient.all_objects.get(pk=beef.pk).current_stock == Decimal("50")

    def test_valuation(self, store_client, beef):
        response = store_client.get('/api/inventory/valuation/')

        assert response.status_code == 200
        assert Decimal(response.data['total_value']) == Decimal("500000.00")


@pytest.mark.django_db
class TestRebuildStockCommand:

    def test_command_rebuilds_store(self, store, beef):
        Ingredient.all_objects.filter(pk=beef.pk).update(current_stock=Decimal("3"))
        out = StringIO()

        call_command('rebuild_stock', '--store', store.slug, stdout=out)

        assert '1 ingredient balance(s) corrected' in out.getvalue()
        assert Ingredient.all_objects.get(pk=beef.pk).current_stock == Decimal("50")

    def test_command_dry_run(self, store, beef):
        Ingredient.all_objects.filter(pk=beef.pk).update(current_stock=Decimal("3"))
        out = StringIO()

        call_command('rebuild_stock', '--all', '--dry-run', stdout=out)

        assert 'would be corrected' in out.getvalue()
        assert Ingredient.all_objects.get(pk=beef.pk).current_stock == Decimal("3")
        assert StockAdjustmentLog.all_objects.filter(ingredient=beef).count() == 1

    def test_command_requires_target(self, store):
        with pytest.raises(CommandError):
            call_command('rebuild_stock')
