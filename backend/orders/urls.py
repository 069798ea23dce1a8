from django.urls import path

from orders.views import (
    BatchProductionView,
    DailySalesView,
    OrderCancelView,
    OrderListCreateView,
)

urlpatterns = [
    path('', OrderListCreateView.as_view(), name='order-list-create'),
    path('production/', BatchProductionView.as_view(), name='batch-production'),
    path('sales/', DailySalesView.as_view(), name='daily-sales'),
    path('<uuid:pk>/cancel/', OrderCancelView.as_view(), name='order-cancel'),
]
