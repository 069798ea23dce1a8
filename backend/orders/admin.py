from django.contrib import admin

from orders.models import Order, OrderItem, SalesDailyAggregate


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['recipe', 'quantity', 'unit_price']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are created and cancelled through FulfillmentService so stock and
    sales totals move with them; the admin only displays them.
    """
    list_display = ['order_number', 'store', 'status', 'sale_date', 'total_amount', 'total_cost', 'created_at']
    list_filter = ['store', 'status', 'sale_date']
    search_fields = ['order_number']
    readonly_fields = [
        'order_number', 'status', 'total_amount', 'total_cost',
        'sale_date', 'created_at', 'cancelled_at',
    ]
    inlines = [OrderItemInline]

    def get_queryset(self, request):
        """Show all stores in Django admin."""
        return Order.all_objects.select_related('store')

    def has_add_permission(self, request):
        return False


@admin.register(SalesDailyAggregate)
class SalesDailyAggregateAdmin(admin.ModelAdmin):
    list_display = ['sales_date', 'store', 'daily_revenue', 'daily_cogs', 'order_count']
    list_filter = ['store']
    date_hierarchy = 'sales_date'
    readonly_fields = ['daily_revenue', 'daily_cogs', 'order_count']

    def get_queryset(self, request):
        """Show all stores in Django admin."""
        return SalesDailyAggregate.all_objects.select_related('store')
