"""
Analytics reports computed from the stock ledger, sales history and the
recipe graph.
"""
from reports.services.loss_service import LossReportRow, LossReportService
from reports.services.depletion_service import DepletionRow, DepletionService
from reports.services.sourcing_service import SourcingRow, SourcingService, SupplierPrice
from reports.services.forecast_service import ForecastRow, ForecastService
from reports.services.menu_performance_service import (
    MenuPerformanceRow,
    MenuPerformanceService,
    Quadrant,
)

__all__ = [
    'LossReportRow',
    'LossReportService',
    'DepletionRow',
    'DepletionService',
    'SourcingRow',
    'SourcingService',
    'SupplierPrice',
    'ForecastRow',
    'ForecastService',
    'MenuPerformanceRow',
    'MenuPerformanceService',
    'Quadrant',
]
