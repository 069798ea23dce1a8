"""
Daily sales aggregates.

One row per (store, sales_date), created on first use. Order amounts only
move through relative updates; the one absolute write is an owner's manual
revenue entry, which leaves COGS untouched.
"""
import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from core_backend.exceptions import InvalidArgument
from costing.services import quantize_money
from orders.models import SalesDailyAggregate

logger = logging.getLogger(__name__)


class SalesAggregateService:

    @staticmethod
    def apply(store, sales_date, revenue, cogs, order_count=1):
        """
        Add revenue/COGS/order count to the store's aggregate for a day.
        Pass negative values to subtract (order cancellation).
        """
        if SalesAggregateService._increment(store, sales_date, revenue, cogs, order_count):
            return

        try:
            # Savepoint: a concurrent insert for the same day must not abort the caller's transaction
            with transaction.atomic():
                SalesDailyAggregate.all_objects.create(
                    store=store,
                    sales_date=sales_date,
                    daily_revenue=revenue,
                    daily_cogs=cogs,
                    order_count=order_count,
                )
            logger.debug(f"Created sales aggregate for {store.slug} on {sales_date}")
        except IntegrityError:
            SalesAggregateService._increment(store, sales_date, revenue, cogs, order_count)

    @staticmethod
    def record_manual(store, sales_date, daily_revenue=None, memo=None):
        """
        Owner-entered figures for a day: overwrite revenue and/or memo.

        COGS and order count stay as accumulated from orders, so a later
        sale or cancellation on the same day still moves them. Omitted
        fields keep their current value.

        Raises:
            InvalidArgument: future date or negative revenue.
        """
        if sales_date > store.local_today():
            raise InvalidArgument(f"Sales date {sales_date} is in the future")
        if daily_revenue is not None:
            try:
                daily_revenue = Decimal(str(daily_revenue))
            except (ArithmeticError, ValueError, TypeError):
                raise InvalidArgument(f"Invalid daily revenue: {daily_revenue!r}")
            if not daily_revenue.is_finite() or daily_revenue < 0:
                raise InvalidArgument(f"Daily revenue must be zero or more, got {daily_revenue}")
            daily_revenue = quantize_money(daily_revenue)

        changes = {'updated_at': timezone.now()}
        if daily_revenue is not None:
            changes['daily_revenue'] = daily_revenue
        if memo is not None:
            changes['memo'] = memo

        with transaction.atomic():
            aggregate, created = SalesDailyAggregate.all_objects.select_for_update().get_or_create(
                store=store,
                sales_date=sales_date,
            )
            SalesDailyAggregate.all_objects.filter(pk=aggregate.pk).update(**changes)
            aggregate.refresh_from_db()

        logger.info(
            f"Manual sales entry for {store.slug} on {sales_date}: revenue {aggregate.daily_revenue}, "
            f"COGS kept at {aggregate.daily_cogs}"
        )
        return aggregate

    @staticmethod
    def _increment(store, sales_date, revenue, cogs, order_count):
        return SalesDailyAggregate.all_objects.filter(store=store, sales_date=sales_date).update(
            daily_revenue=F('daily_revenue') + revenue,
            daily_cogs=F('daily_cogs') + cogs,
            order_count=F('order_count') + order_count,
            updated_at=timezone.now(),
        )

    @staticmethod
    def daily_totals(store):
        return SalesDailyAggregate.all_objects.filter(store=store).order_by('sales_date')

    @staticmethod
    def summarize(queryset):
        totals = queryset.aggregate(
            revenue=Sum('daily_revenue'),
            cogs=Sum('daily_cogs'),
            orders=Sum('order_count'),
        )
        revenue = totals['revenue'] or Decimal("0")
        cogs = totals['cogs'] or Decimal("0")
        return {
            'total_revenue': revenue,
            'total_cogs': cogs,
            'gross_profit': revenue - cogs,
            'order_count': totals['orders'] or 0,
            'cogs_rate': (cogs / revenue * 100).quantize(Decimal("0.01")) if revenue else None,
        }
