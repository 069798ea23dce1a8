"""
Pytest fixtures for costing tests.
"""
import pytest


@pytest.fixture
def sauce_pasta(make_ingredient, make_recipe):
    """Pasta with a tomato sauce prep recipe, for cost breakdown tests."""
    tomato = make_ingredient('Tomato', purchase_price='2000', conversion_factor='1000')
    noodles = make_ingredient('Dry Pasta', purchase_price='3000', conversion_factor='1000')
    sauce = make_recipe('Tomato Sauce', [(tomato, '100')], is_sub_recipe=True)
    return make_recipe('Pasta Pomodoro', [(noodles, '120'), (sauce, '1.5')], selling_price='12000')
