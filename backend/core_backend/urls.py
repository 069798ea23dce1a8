"""
URL configuration for core_backend project.

Every API path below is scoped to the store selected by the X-Store-ID
header (see stores.middleware.StoreMiddleware).
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Simple health check endpoint that doesn't require a store"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/costing/", include("costing.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/procurement/", include("procurement.urls")),
    path("api/orders/", include("orders.urls")),
    path("api/reports/", include("reports.urls")),
]
