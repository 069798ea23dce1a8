"""
Order views - sale recording, cancellation, batch production and daily sales.
"""
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.filters import DailySalesFilter, OrderFilter
from orders.models import Order
from orders.serializers import (
    BatchProductionSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    ProductionResultSerializer,
    SalesDailyAggregateSerializer,
    SalesManualEntrySerializer,
)
from orders.services import FulfillmentService, SalesAggregateService
from stores.permissions import HasStoreContext


class OrderListCreateView(APIView):
    """
    GET  /api/orders/?sale_date=2024-05-01&status=completed
    POST /api/orders/
    """
    permission_classes = [HasStoreContext]
    filterset_class = OrderFilter

    def get(self, request):
        queryset = Order.all_objects.filter(store=request.store).prefetch_related('items__recipe')
        queryset = DjangoFilterBackend().filter_queryset(request, queryset, self)
        return Response(OrderSerializer(queryset[:200], many=True).data)

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = FulfillmentService.create_order(
            request.store,
            data['items'],
            sale_date=data['sale_date'],
            total_amount=data['total_amount'],
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderCancelView(APIView):
    """
    POST /api/orders/:id/cancel/

    Idempotent: cancelling a cancelled order returns 200 with cancelled=false.
    """
    permission_classes = [HasStoreContext]

    def post(self, request, pk):
        cancelled = FulfillmentService.cancel_order(pk, request.store)
        order = Order.all_objects.get(pk=pk)
        return Response({
            'cancelled': cancelled,
            'order': OrderSerializer(order).data,
        })


class BatchProductionView(APIView):
    """
    POST /api/orders/production/
    """
    permission_classes = [HasStoreContext]

    def post(self, request):
        serializer = BatchProductionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = FulfillmentService.record_batch_production(
            request.store,
            serializer.validated_data['recipe_id'],
            serializer.validated_data['quantity'],
        )
        return Response(ProductionResultSerializer(result).data, status=status.HTTP_201_CREATED)


class DailySalesView(APIView):
    """
    GET /api/orders/sales/?start_date=2024-05-01&end_date=2024-05-31
    PUT /api/orders/sales/  {"sales_date", "daily_revenue", "memo"}
    """
    permission_classes = [HasStoreContext]
    filterset_class = DailySalesFilter

    def get(self, request):
        queryset = DjangoFilterBackend().filter_queryset(
            request, SalesAggregateService.daily_totals(request.store), self
        )
        return Response({
            'summary': SalesAggregateService.summarize(queryset),
            'days': SalesDailyAggregateSerializer(queryset, many=True).data,
        })

    def put(self, request):
        serializer = SalesManualEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        aggregate = SalesAggregateService.record_manual(
            request.store,
            data['sales_date'],
            daily_revenue=data.get('daily_revenue'),
            memo=data.get('memo'),
        )
        return Response(SalesDailyAggregateSerializer(aggregate).data)
