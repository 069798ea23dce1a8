"""
Costing views - ingredient and recipe lookup, recipe cost breakdown.
"""
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from costing.models import Ingredient, Recipe
from costing.serializers import (
    IngredientSerializer,
    QuantityQuerySerializer,
    RecipeCostBreakdownSerializer,
    RecipeSerializer,
)
from costing.services import BOMResolver
from stores.permissions import HasStoreContext


class IngredientViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Ingredients of the current store.

    GET /api/costing/ingredients/
    GET /api/costing/ingredients/:id/
    """
    serializer_class = IngredientSerializer
    permission_classes = [HasStoreContext]

    def get_queryset(self):
        # Ingredient.objects is already store-scoped via StoreManager
        return Ingredient.objects.all()


class RecipeViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Recipes of the current store with their BOM components.

    GET /api/costing/recipes/
    GET /api/costing/recipes/:id/
    """
    serializer_class = RecipeSerializer
    permission_classes = [HasStoreContext]

    def get_queryset(self):
        queryset = Recipe.objects.prefetch_related('components')
        if self.request.query_params.get('sub_recipes') == 'false':
            queryset = queryset.filter(is_sub_recipe=False)
        return queryset


class RecipeCostView(APIView):
    """
    Resolve the material cost of N portions of a recipe.

    GET /api/costing/recipes/:id/cost/?quantity=2
    """
    permission_classes = [HasStoreContext]

    def get(self, request, pk):
        query = QuantityQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(
                {'error': 'quantity must be a non-negative number.', 'details': query.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        # Engine errors (not found, cyclic graph) render via engine_exception_handler
        resolver = BOMResolver(store=request.store)
        breakdown = resolver.cost_breakdown(pk, query.validated_data['quantity'])

        return Response(RecipeCostBreakdownSerializer(breakdown).data)
