"""
Costing serializers - ingredients, recipe graph and cost breakdown responses.
"""
from rest_framework import serializers

from costing.models import Ingredient, Recipe, RecipeComponent


class IngredientSerializer(serializers.ModelSerializer):
    """Ingredient with its derived cost per usage unit."""
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=4, read_only=True)
    is_below_safety_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Ingredient
        fields = [
            'id', 'name',
            'purchase_price', 'purchase_unit', 'usage_unit',
            'conversion_factor', 'loss_rate',
            'current_stock', 'safety_stock',
            'unit_cost', 'is_below_safety_stock',
            'is_active', 'updated_at',
        ]
        # Stock only moves through the ledger
        read_only_fields = ['id', 'current_stock', 'updated_at']


class RecipeComponentSerializer(serializers.ModelSerializer):
    item_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = RecipeComponent
        fields = ['id', 'item_type', 'item_id', 'quantity']


class RecipeSerializer(serializers.ModelSerializer):
    components = RecipeComponentSerializer(many=True, read_only=True)

    class Meta:
        model = Recipe
        fields = [
            'id', 'name', 'category', 'selling_price',
            'is_sub_recipe', 'is_active', 'components',
        ]


class IngredientCostLineSerializer(serializers.Serializer):
    """A single leaf ingredient in a cost breakdown."""
    ingredient_id = serializers.IntegerField()
    ingredient_name = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4)
    usage_unit = serializers.CharField()
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=4)
    extended_cost = serializers.DecimalField(max_digits=14, decimal_places=2)


class RecipeCostBreakdownSerializer(serializers.Serializer):
    """
    Complete cost breakdown for N portions of a recipe.

    Used in GET /api/costing/recipes/:id/cost/
    """
    recipe_id = serializers.IntegerField()
    recipe_name = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4)
    selling_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    margin_amount = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    margin_percent = serializers.DecimalField(max_digits=8, decimal_places=2, allow_null=True)
    ingredients = IngredientCostLineSerializer(many=True)


class QuantityQuerySerializer(serializers.Serializer):
    quantity = serializers.DecimalField(
        max_digits=14, decimal_places=4, min_value=0, required=False, default=1
    )
