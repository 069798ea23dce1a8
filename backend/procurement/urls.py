from django.urls import path

from procurement.views import PurchaseListCreateView

urlpatterns = [
    path('purchases/', PurchaseListCreateView.as_view(), name='purchase-list-create'),
]
