from django.apps import AppConfig
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Log the engine configuration once at startup so a misconfigured
        negative-stock policy or BOM depth shows up in the logs.
        """
        from stores.models import NegativeStockPolicy

        policy = getattr(settings, "INVENTORY_NEGATIVE_STOCK_POLICY", NegativeStockPolicy.ALLOW)
        if policy not in NegativeStockPolicy.values:
            logger.warning(
                f"Unknown INVENTORY_NEGATIVE_STOCK_POLICY {policy!r}; "
                f"expected one of {', '.join(NegativeStockPolicy.values)}"
            )
        logger.debug(
            f"Engine config: negative stock policy={policy}, "
            f"max BOM depth={getattr(settings, 'COSTING_MAX_BOM_DEPTH', 10)}"
        )
