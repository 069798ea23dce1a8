"""
Django admin configuration for costing models.
"""
from django.contrib import admin

from costing.models import Ingredient, Recipe, RecipeComponent


class RecipeComponentInline(admin.TabularInline):
    model = RecipeComponent
    fk_name = 'recipe'
    extra = 1
    autocomplete_fields = ['ingredient', 'sub_recipe']


@admin.register(Ingredient)
class IngredientAdmin(admin.ModelAdmin):
    """
    Admin for Ingredient model.
    current_stock is read-only: it only moves through the stock ledger.
    """
    list_display = [
        'name', 'store', 'purchase_price', 'purchase_unit', 'usage_unit',
        'conversion_factor', 'loss_rate', 'current_stock', 'safety_stock', 'is_active',
    ]
    list_filter = ['store', 'is_active']
    search_fields = ['name']
    readonly_fields = ['current_stock', 'created_at', 'updated_at']
    ordering = ['store', 'name']

    def get_queryset(self, request):
        """Show all stores in Django admin."""
        return Ingredient.all_objects.select_related('store')


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ['name', 'store', 'category', 'selling_price', 'is_sub_recipe', 'is_active']
    list_filter = ['store', 'is_sub_recipe', 'is_active']
    search_fields = ['name', 'category']
    inlines = [RecipeComponentInline]

    def get_queryset(self, request):
        """Show all stores in Django admin."""
        return Recipe.all_objects.select_related('store')
