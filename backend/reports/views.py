import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .serializers import (
    DepletionParameterSerializer,
    DepletionRowSerializer,
    ForecastParameterSerializer,
    ForecastRowSerializer,
    LossReportParameterSerializer,
    LossReportRowSerializer,
    MenuPerformanceParameterSerializer,
    MenuPerformanceRowSerializer,
    SourcingRowSerializer,
)
from .services import (
    DepletionService,
    ForecastService,
    LossReportService,
    MenuPerformanceService,
    SourcingService,
)

logger = logging.getLogger(__name__)


class ReportViewSet(viewsets.ViewSet):
    """
    Analytics reports for the current store. All endpoints are read-only GETs
    with optional query parameters overriding the configured defaults.
    """

    def _params(self, serializer_class, request):
        serializer = serializer_class(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    @action(detail=False, methods=["get"], url_path="loss")
    def loss(self, request):
        params = self._params(LossReportParameterSerializer, request)
        rows = LossReportService.generate(request.store, **params)
        return Response(LossReportRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="depletion")
    def depletion(self, request):
        params = self._params(DepletionParameterSerializer, request)
        rows = DepletionService.predict(request.store, **params)
        return Response(DepletionRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="sourcing")
    def sourcing(self, request):
        rows = SourcingService.optimize(request.store)
        return Response(SourcingRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="forecast")
    def forecast(self, request):
        params = self._params(ForecastParameterSerializer, request)
        rows = ForecastService.forecast(request.store, **params)
        return Response(ForecastRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="menu-performance")
    def menu_performance(self, request):
        params = self._params(MenuPerformanceParameterSerializer, request)
        result = MenuPerformanceService.analyze(request.store, **params)
        return Response({
            "average_volume": str(result["average_volume"]),
            "average_margin": str(result["average_margin"]),
            "items": MenuPerformanceRowSerializer(result["items"], many=True).data,
        }, status=status.HTTP_200_OK)
