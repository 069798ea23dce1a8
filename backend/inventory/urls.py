from django.urls import path

from inventory.views import (
    InventoryValuationView,
    RebuildStockView,
    StockAdjustmentCreateView,
    StockHistoryView,
)

urlpatterns = [
    path('adjustments/', StockAdjustmentCreateView.as_view(), name='stock-adjustment-create'),
    path('history/', StockHistoryView.as_view(), name='stock-history'),
    path('rebuild/', RebuildStockView.as_view(), name='stock-rebuild'),
    path('valuation/', InventoryValuationView.as_view(), name='inventory-valuation'),
]
