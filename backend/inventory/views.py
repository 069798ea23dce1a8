"""
Stock ledger views - manual adjustments, history, rebuild and valuation.
"""
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from inventory.filters import StockHistoryFilter
from inventory.models import StockAdjustmentLog
from inventory.serializers import (
    InventoryValuationSerializer,
    RebuildStockRequestSerializer,
    StockAdjustmentLogSerializer,
    StockAdjustmentRequestSerializer,
    StockDriftSerializer,
)
from inventory.services import DEFAULT_HISTORY_LIMIT, StockLedgerService
from stores.permissions import HasStoreContext


class StockHistoryPagination(LimitOffsetPagination):
    default_limit = DEFAULT_HISTORY_LIMIT
    max_limit = 500


class StockAdjustmentCreateView(APIView):
    """
    Record a manual stock adjustment.

    POST /api/inventory/adjustments/
    """
    permission_classes = [HasStoreContext]

    def post(self, request):
        serializer = StockAdjustmentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = StockLedgerService.record_adjustment(
            data['ingredient_id'],
            data['quantity'],
            data['adjustment_type'],
            reason=data['reason'],
            timestamp=data['timestamp'],
            store=request.store,
        )

        if entry is None:
            # 'clamp' policy with nothing left to take
            return Response(
                {'detail': 'No stock available; nothing was recorded.'},
                status=status.HTTP_200_OK
            )
        return Response(StockAdjustmentLogSerializer(entry).data, status=status.HTTP_201_CREATED)


class StockHistoryView(generics.ListAPIView):
    """
    Ledger entries, newest first.

    GET /api/inventory/history/?ingredient=12&limit=50
    """
    serializer_class = StockAdjustmentLogSerializer
    permission_classes = [HasStoreContext]
    filter_backends = [DjangoFilterBackend]
    filterset_class = StockHistoryFilter
    pagination_class = StockHistoryPagination

    def get_queryset(self):
        return (
            StockAdjustmentLog.all_objects
            .filter(store=self.request.store)
            .select_related('ingredient')
            .order_by('-created_at', '-id')
        )


class RebuildStockView(APIView):
    """
    Rebuild cached stock balances from the ledger.

    POST /api/inventory/rebuild/
    Body: {"ingredient_ids": [1, 2], "dry_run": false}
    """
    permission_classes = [HasStoreContext]

    def post(self, request):
        serializer = RebuildStockRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ingredient_ids = serializer.validated_data['ingredient_ids']

        if serializer.validated_data['dry_run']:
            drift = StockLedgerService.find_drift(request.store, ingredient_ids)
        else:
            drift = StockLedgerService.rebuild_cached_stock(request.store, ingredient_ids)

        return Response({
            'dry_run': serializer.validated_data['dry_run'],
            'corrections': StockDriftSerializer(drift, many=True).data,
        })


class InventoryValuationView(APIView):
    """
    GET /api/inventory/valuation/
    """
    permission_classes = [HasStoreContext]

    def get(self, request):
        valuation = StockLedgerService.inventory_valuation(request.store)
        return Response(InventoryValuationSerializer(valuation).data)
