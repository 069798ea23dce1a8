import django_filters

from orders.models import Order, SalesDailyAggregate


class OrderFilter(django_filters.FilterSet):
    """
    Filters for the order list.

    - sale_date: one business date
    - sale_date_after / sale_date_before: inclusive business date bounds
    - status: completed or cancelled
    """
    sale_date = django_filters.DateFilter()
    sale_date_after = django_filters.DateFilter(field_name='sale_date', lookup_expr='gte')
    sale_date_before = django_filters.DateFilter(field_name='sale_date', lookup_expr='lte')
    status = django_filters.ChoiceFilter(choices=Order.OrderStatus.choices)

    class Meta:
        model = Order
        fields = ['sale_date', 'sale_date_after', 'sale_date_before', 'status']


class DailySalesFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name='sales_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='sales_date', lookup_expr='lte')

    class Meta:
        model = SalesDailyAggregate
        fields = ['start_date', 'end_date']
