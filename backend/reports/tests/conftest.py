import pytest


@pytest.fixture
def flour(make_ingredient):
    """Counted in sacks both ways, so purchase and usage units match."""
    return make_ingredient('Flour', purchase_price='20000', conversion_factor='1',
                           purchase_unit='sack', usage_unit='sack',
                           current_stock='38', safety_stock='4')


@pytest.fixture
def bread(make_recipe, flour):
    return make_recipe('Bread', [(flour, '1')], selling_price='30000')
