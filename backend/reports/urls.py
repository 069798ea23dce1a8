from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

router = SimpleRouter()
router.register(r"", views.ReportViewSet, basename="reports")

urlpatterns = [
    path("", include(router.urls)),
]

# GET /loss/?period_days=30
# GET /depletion/?window_days=14&threshold_days=7
# GET /sourcing/
# GET /forecast/?window_days=30&horizon_days=14&threshold_days=7
# GET /menu-performance/?days=30
