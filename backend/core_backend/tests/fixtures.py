"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like stores, ingredients and recipes.
"""
import pytest
from decimal import Decimal

from stores.models import Store
from stores.managers import set_current_store
from costing.models import ComponentType, Ingredient, Recipe, RecipeComponent
from inventory.models import AdjustmentType
from inventory.services import StockLedgerService


# ============================================================================
# STORE FIXTURES
# ============================================================================

@pytest.fixture
def store(db):
    """Create the test store and make it the current store."""
    store = Store.objects.create(
        name='Corner Bistro',
        slug='corner-bistro',
        timezone='UTC',
        is_active=True
    )
    set_current_store(store)
    return store


@pytest.fixture
def store_b(db):
    """A second store, for isolation tests. Not made current."""
    return Store.objects.create(
        name='Harbor Cafe',
        slug='harbor-cafe',
        timezone='Asia/Seoul',
        is_active=True
    )


# ============================================================================
# FACTORY FIXTURES
# ============================================================================

@pytest.fixture
def make_ingredient(store):
    """
    Factory for ingredients of the test store.

    Usage:
        flour = make_ingredient('Flour', purchase_price='3000', conversion_factor='1000')
    """
    def _make(name, purchase_price='0', conversion_factor='1', loss_rate='0',
              current_stock='0', safety_stock='0', purchase_unit='kg', usage_unit='g',
              store=store):
        ingredient = Ingredient.all_objects.create(
            store=store,
            name=name,
            purchase_price=Decimal(purchase_price),
            purchase_unit=purchase_unit,
            usage_unit=usage_unit,
            conversion_factor=Decimal(conversion_factor),
            loss_rate=Decimal(loss_rate),
            safety_stock=Decimal(safety_stock),
        )
        # Opening stock goes through the ledger so cached stock matches its replay
        if Decimal(current_stock):
            StockLedgerService.record_adjustment(
                ingredient.pk, Decimal(current_stock), AdjustmentType.CORRECTION,
                reason='Opening balance', store=store,
            )
            ingredient.refresh_from_db()
        return ingredient
    return _make


@pytest.fixture
def make_recipe(store):
    """
    Factory for recipes with components.

    ``components`` is a list of (Ingredient | Recipe, quantity) pairs.
    """
    def _make(name, components=(), selling_price='0', is_sub_recipe=False, store=store):
        recipe = Recipe.all_objects.create(
            store=store,
            name=name,
            selling_price=Decimal(selling_price),
            is_sub_recipe=is_sub_recipe,
        )
        for item, quantity in components:
            add_component(recipe, item, quantity)
        return recipe
    return _make


def add_component(recipe, item, quantity):
    """Attach an ingredient or sub-recipe to a recipe."""
    if isinstance(item, Ingredient):
        return RecipeComponent.objects.create(
            recipe=recipe,
            item_type=ComponentType.INGREDIENT,
            ingredient=item,
            quantity=Decimal(str(quantity)),
        )
    return RecipeComponent.objects.create(
        recipe=recipe,
        item_type=ComponentType.RECIPE,
        sub_recipe=item,
        quantity=Decimal(str(quantity)),
    )


# ============================================================================
# MENU FIXTURES
# ============================================================================

@pytest.fixture
def beef(make_ingredient):
    """10000 per kg, used in grams: 10.0 per gram."""
    return make_ingredient('Beef Patty Mince', purchase_price='10000', conversion_factor='1000',
                           current_stock='50')


@pytest.fixture
def bun(make_ingredient):
    return make_ingredient('Brioche Bun', purchase_price='500', conversion_factor='1',
                           purchase_unit='ea', usage_unit='ea', current_stock='100')


@pytest.fixture
def burger(make_recipe, beef, bun):
    """200 g beef + 1 bun, sells for 9000."""
    return make_recipe('Burger', [(beef, '200'), (bun, '1')], selling_price='9000')


@pytest.fixture
def burger_set(make_recipe, burger):
    """Two burgers, sells for 15000."""
    return make_recipe('Burger Set', [(burger, '2')], selling_price='15000')
