"""
Purchase recording.

A purchase is written as one unit of work: the purchase and its lines, a
positive 'purchase' ledger entry per line, and the ingredient's purchase
price moved to the latest price paid.
"""
import logging
from decimal import Decimal

from core_backend.exceptions import IngredientNotFound, InvalidArgument
from core_backend.infrastructure.unit_of_work import UnitOfWork
from costing.models import Ingredient
from costing.services.unit_cost import quantize_money, quantize_quantity
from inventory.models import AdjustmentType
from inventory.services import StockLedgerService
from procurement.models import Purchase, PurchaseItem

logger = logging.getLogger(__name__)


class PurchaseService:

    @staticmethod
    def record_purchase(store, supplier_name, items, purchase_date=None, memo=""):
        """
        Record a supplier purchase.

        Args:
            store: Owning store.
            supplier_name: Free-text supplier name.
            items: [{'ingredient_id', 'quantity', 'unit_price'}], quantity in purchase units.
            purchase_date: Invoice date (defaults to today in the store's timezone).

        Returns:
            The created Purchase.

        Raises:
            InvalidArgument: no items, non-positive quantity, negative price,
                future purchase date.
            IngredientNotFound: an ingredient is not one of the store's.
        """
        lines = PurchaseService._validate_items(items)
        ingredients = Ingredient.all_objects.in_bulk([line['ingredient_id'] for line in lines])
        for line in lines:
            ingredient = ingredients.get(line['ingredient_id'])
            if ingredient is None or ingredient.store_id != store.id:
                raise IngredientNotFound(line['ingredient_id'])

        today = store.local_today()
        purchase_date = purchase_date or today
        if purchase_date > today:
            raise InvalidArgument(f"Purchase date {purchase_date} is in the future")
        # Back-dated invoices land on the ledger at the start of their day
        if purchase_date == today:
            timestamp = None
        else:
            timestamp = store.start_of_day(purchase_date)

        total_amount = quantize_money(sum(
            (line['quantity'] * line['unit_price'] for line in lines), Decimal("0")
        ))

        with UnitOfWork("record_purchase") as uow:
            uow.step("persist_purchase")
            purchase = Purchase.all_objects.create(
                store=store,
                supplier_name=supplier_name or "",
                purchase_date=purchase_date,
                total_amount=total_amount,
                memo=memo or "",
            )
            PurchaseItem.objects.bulk_create([
                PurchaseItem(
                    purchase=purchase,
                    ingredient_id=line['ingredient_id'],
                    quantity=line['quantity'],
                    unit_price=line['unit_price'],
                )
                for line in lines
            ])

            uow.step("apply_stock")
            reason = f"Purchase #{purchase.pk} ({supplier_name or 'unknown supplier'})"
            for line in lines:
                StockLedgerService.record_adjustment(
                    line['ingredient_id'],
                    line['quantity'],
                    AdjustmentType.PURCHASE,
                    reason=reason,
                    timestamp=timestamp,
                    reference_id=purchase.reference_id,
                    store=store,
                )

            uow.step("update_prices")
            # Later lines for the same ingredient win
            latest_prices = {line['ingredient_id']: line['unit_price'] for line in lines}
            for ingredient_id, unit_price in latest_prices.items():
                Ingredient.all_objects.filter(pk=ingredient_id).update(purchase_price=unit_price)

            uow.on_commit(lambda: logger.info(
                f"Recorded purchase #{purchase.pk} from {supplier_name or 'unknown supplier'}: "
                f"{len(lines)} line(s), total {total_amount} (store {store.slug})"
            ))

        return purchase

    @staticmethod
    def _validate_items(items):
        if not items:
            raise InvalidArgument("A purchase needs at least one item")

        lines = []
        for item in items:
            try:
                quantity = quantize_quantity(item['quantity'])
                unit_price = Decimal(str(item['unit_price']))
                ingredient_id = item['ingredient_id']
            except KeyError as e:
                raise InvalidArgument(f"Purchase item is missing {e}")
            except (ArithmeticError, ValueError, TypeError):
                raise InvalidArgument(f"Invalid unit price: {item['unit_price']!r}")
            if not unit_price.is_finite():
                raise InvalidArgument(f"Invalid unit price: {item['unit_price']!r}")
            if quantity <= 0:
                raise InvalidArgument(f"Purchase quantity must be positive, got {item['quantity']}")
            if unit_price < 0:
                raise InvalidArgument(f"Unit price cannot be negative, got {unit_price}")
            lines.append({'ingredient_id': ingredient_id, 'quantity': quantity, 'unit_price': unit_price})
        return lines

    @staticmethod
    def list_purchases(store):
        queryset = Purchase.all_objects.filter(store=store).prefetch_related('items__ingredient')
        return queryset.order_by('-purchase_date', '-id')
