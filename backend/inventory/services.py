"""
Stock ledger service.

Every stock movement is an append-only StockAdjustmentLog entry plus a
relative update of Ingredient.current_stock. The cached balance is never
read-modified-written in Python, so concurrent movements on the same
ingredient cannot lose updates.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, ExpressionWrapper, F, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core_backend.exceptions import IngredientNotFound, InsufficientStockError, InvalidArgument
from costing.models import Ingredient
from costing.services.unit_cost import quantize_money, quantize_quantity
from inventory.models import AdjustmentType, StockAdjustmentLog
from stores.managers import get_current_store
from stores.models import NegativeStockPolicy

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

_LEDGER_SUM = Coalesce(
    Sum('adjustments__quantity'),
    Value(Decimal("0")),
    output_field=DecimalField(max_digits=18, decimal_places=4),
)


@dataclass
class StockDrift:
    """Cached balance that disagrees with the replayed ledger."""
    ingredient_id: int
    ingredient_name: str
    cached_stock: Decimal
    ledger_stock: Decimal

    @property
    def difference(self):
        return self.cached_stock - self.ledger_stock


class StockLedgerService:

    @staticmethod
    @transaction.atomic
    def record_adjustment(
        ingredient_id,
        signed_quantity,
        adjustment_type,
        reason="",
        timestamp=None,
        reference_id="",
        store=None,
    ):
        """
        Append a ledger entry and move the cached balance by the same amount.

        Args:
            ingredient_id: Ingredient to adjust.
            signed_quantity: Change in purchase units; negative consumes stock.
            adjustment_type: One of AdjustmentType.
            timestamp: When the movement happened (defaults to now).
            reference_id: Links entries of one order/purchase/production run.
            store: Owning store. Defaults to the current store context.

        Returns:
            The new StockAdjustmentLog, or None when the 'clamp' policy
            reduced the decrement to nothing.

        Raises:
            IngredientNotFound, InvalidArgument, InsufficientStockError
        """
        if adjustment_type not in AdjustmentType.values:
            raise InvalidArgument(f"Unknown adjustment type: {adjustment_type!r}")

        quantity = quantize_quantity(signed_quantity)
        if quantity == 0:
            raise InvalidArgument("Adjustment quantity cannot be zero")

        ingredient = StockLedgerService._get_ingredient(ingredient_id, store)
        policy = ingredient.store.effective_negative_stock_policy

        if quantity < 0 and policy == NegativeStockPolicy.REJECT:
            # Guard evaluated by the database: only update while enough stock remains
            updated = Ingredient.all_objects.filter(
                pk=ingredient.pk,
                current_stock__gte=-quantity,
            ).update(current_stock=F('current_stock') + quantity)
            if not updated:
                ingredient.refresh_from_db(fields=['current_stock'])
                raise InsufficientStockError(ingredient, -quantity, ingredient.current_stock)

        elif quantity < 0 and policy == NegativeStockPolicy.CLAMP:
            locked = Ingredient.all_objects.select_for_update().get(pk=ingredient.pk)
            available = max(locked.current_stock, Decimal("0"))
            applied = -min(-quantity, available)
            if applied != quantity:
                logger.warning(
                    f"Clamped {adjustment_type} on {ingredient.name} from {quantity} to {applied} "
                    f"(available: {locked.current_stock})"
                )
            if applied == 0:
                return None
            quantity = applied
            Ingredient.all_objects.filter(pk=ingredient.pk).update(
                current_stock=F('current_stock') + quantity
            )

        else:
            Ingredient.all_objects.filter(pk=ingredient.pk).update(
                current_stock=F('current_stock') + quantity
            )

        entry = StockAdjustmentLog.all_objects.create(
            store=ingredient.store,
            ingredient=ingredient,
            quantity=quantity,
            adjustment_type=adjustment_type,
            reason=reason or "",
            reference_id=reference_id or "",
            created_at=timestamp or timezone.now(),
        )

        logger.info(
            f"Stock {adjustment_type} {quantity:+} {ingredient.purchase_unit} "
            f"for {ingredient.name} (store {ingredient.store.slug}, ref '{entry.reference_id}')"
        )
        return entry

    @staticmethod
    def _get_ingredient(ingredient_id, store=None):
        store = store or get_current_store()
        queryset = Ingredient.all_objects.select_related('store')
        if store is not None:
            queryset = queryset.filter(store=store)
        try:
            return queryset.get(pk=ingredient_id)
        except (Ingredient.DoesNotExist, ValueError, TypeError):
            raise IngredientNotFound(ingredient_id)

    @staticmethod
    def get_history(store, ingredient_id=None, limit=DEFAULT_HISTORY_LIMIT, since=None, adjustment_type=None):
        """Ledger entries, newest first."""
        queryset = StockAdjustmentLog.all_objects.filter(store=store).select_related('ingredient')
        if ingredient_id is not None:
            queryset = queryset.filter(ingredient_id=ingredient_id)
        if since is not None:
            queryset = queryset.filter(created_at__gte=since)
        if adjustment_type:
            queryset = queryset.filter(adjustment_type=adjustment_type)
        queryset = queryset.order_by('-created_at', '-id')
        if limit:
            queryset = queryset[:limit]
        return list(queryset)

    @staticmethod
    def replay_balance(ingredient):
        """Sum of all ledger entries for one ingredient."""
        total = StockAdjustmentLog.all_objects.filter(
            ingredient_id=getattr(ingredient, 'pk', ingredient)
        ).aggregate(total=Sum('quantity'))['total']
        return total if total is not None else Decimal("0")

    @staticmethod
    def find_drift(store, ingredient_ids=None):
        """Ingredients whose cached balance differs from the replayed ledger."""
        queryset = Ingredient.all_objects.filter(store=store)
        if ingredient_ids is not None:
            queryset = queryset.filter(pk__in=ingredient_ids)

        drift = []
        for ingredient in queryset.annotate(ledger_stock=_LEDGER_SUM).order_by('pk'):
            if ingredient.current_stock != ingredient.ledger_stock:
                drift.append(StockDrift(
                    ingredient_id=ingredient.pk,
                    ingredient_name=ingredient.name,
                    cached_stock=ingredient.current_stock,
                    ledger_stock=ingredient.ledger_stock,
                ))
        return drift

    @staticmethod
    @transaction.atomic
    def rebuild_cached_stock(store, ingredient_ids=None):
        """
        Overwrite cached balances with the replayed ledger.

        The ledger is the source of truth, so this is the recovery path for
        any drift. Rows are locked so no movement lands between the replay
        and the overwrite.

        Returns:
            List of StockDrift that were corrected.
        """
        locked = Ingredient.all_objects.select_for_update().filter(store=store)
        if ingredient_ids is not None:
            locked = locked.filter(pk__in=ingredient_ids)
        list(locked.values_list('pk', flat=True))

        corrections = StockLedgerService.find_drift(store, ingredient_ids)
        for drift in corrections:
            Ingredient.all_objects.filter(pk=drift.ingredient_id).update(current_stock=drift.ledger_stock)
            logger.warning(
                f"Rebuilt stock for {drift.ingredient_name}: cached {drift.cached_stock} -> "
                f"ledger {drift.ledger_stock} (store {store.slug})"
            )

        if not corrections:
            logger.info(f"Stock ledger consistent for store {store.slug}")
        return corrections

    @staticmethod
    def inventory_valuation(store):
        """Stock on hand at current purchase prices."""
        ingredients = Ingredient.all_objects.filter(store=store, is_active=True)
        total = ingredients.aggregate(
            total=Sum(ExpressionWrapper(
                F('current_stock') * F('purchase_price'),
                output_field=DecimalField(max_digits=28, decimal_places=8),
            ))
        )['total'] or Decimal("0")

        return {
            'total_value': quantize_money(total),
            'ingredient_count': ingredients.count(),
            'below_safety_stock_count': ingredients.filter(current_stock__lt=F('safety_stock')).count(),
        }
