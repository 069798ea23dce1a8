"""
URL configuration for the costing app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from costing.views import IngredientViewSet, RecipeViewSet, RecipeCostView

router = DefaultRouter()
router.register(r'ingredients', IngredientViewSet, basename='ingredient')
router.register(r'recipes', RecipeViewSet, basename='recipe')

urlpatterns = [
    path('', include(router.urls)),
    path('recipes/<int:pk>/cost/', RecipeCostView.as_view(), name='recipe-cost'),
]
