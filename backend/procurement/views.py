"""
Procurement views - purchase recording and history.
"""
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from procurement.filters import PurchaseFilter
from procurement.serializers import PurchaseCreateSerializer, PurchaseSerializer
from procurement.services import PurchaseService
from stores.permissions import HasStoreContext


class PurchaseListCreateView(APIView):
    """
    GET  /api/procurement/purchases/?start_date=2024-01-01&end_date=2024-01-31
    POST /api/procurement/purchases/
    """
    permission_classes = [HasStoreContext]
    filterset_class = PurchaseFilter

    def get(self, request):
        purchases = DjangoFilterBackend().filter_queryset(
            request, PurchaseService.list_purchases(request.store), self
        )
        return Response(PurchaseSerializer(purchases, many=True).data)

    def post(self, request):
        serializer = PurchaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        purchase = PurchaseService.record_purchase(
            request.store,
            data['supplier_name'],
            data['items'],
            purchase_date=data['purchase_date'],
            memo=data['memo'],
        )
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_201_CREATED)
