import django_filters

from inventory.models import AdjustmentType, StockAdjustmentLog


class StockHistoryFilter(django_filters.FilterSet):
    """
    Filters for the ledger history endpoint.

    - ingredient: ingredient id
    - adjustment_type: purchase, spoilage, correction, order, refund, loss, discard
    - since / until: created_at bounds
    - reference_id: all entries of one order, purchase or production run
    """
    ingredient = django_filters.NumberFilter(field_name='ingredient_id')
    adjustment_type = django_filters.ChoiceFilter(choices=AdjustmentType.choices)
    since = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    until = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')
    reference_id = django_filters.CharFilter()

    class Meta:
        model = StockAdjustmentLog
        fields = ['ingredient', 'adjustment_type', 'since', 'until', 'reference_id']
