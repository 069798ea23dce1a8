import django_filters

from procurement.models import Purchase


class PurchaseFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name='purchase_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='purchase_date', lookup_expr='lte')
    supplier = django_filters.CharFilter(field_name='supplier_name', lookup_expr='icontains')

    class Meta:
        model = Purchase
        fields = ['start_date', 'end_date', 'supplier']
