from django.contrib import admin

from procurement.models import Purchase, PurchaseItem


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0
    readonly_fields = ['ingredient', 'quantity', 'unit_price']
    can_delete = False


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    """
    Purchases are recorded through PurchaseService so stock moves with them;
    the admin only displays them.
    """
    list_display = ['purchase_date', 'store', 'supplier_name', 'total_amount']
    list_filter = ['store', 'purchase_date']
    search_fields = ['supplier_name', 'memo']
    inlines = [PurchaseItemInline]

    def get_queryset(self, request):
        """Show all stores in Django admin."""
        return Purchase.all_objects.select_related('store')

    def has_add_permission(self, request):
        return False
