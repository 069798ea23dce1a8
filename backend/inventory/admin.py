from django.contrib import admin

from inventory.models import StockAdjustmentLog


@admin.register(StockAdjustmentLog)
class StockAdjustmentLogAdmin(admin.ModelAdmin):
    """
    Read-only view of the stock ledger.
    Entries are append-only; corrections are recorded as new entries.
    """
    list_display = ['created_at', 'store', 'ingredient', 'adjustment_type', 'quantity', 'reference_id']
    list_filter = ['store', 'adjustment_type', 'created_at']
    search_fields = ['ingredient__name', 'reference_id', 'reason']
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        """Show all stores in Django admin."""
        return StockAdjustmentLog.all_objects.select_related('store', 'ingredient')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
