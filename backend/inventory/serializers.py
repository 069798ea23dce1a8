from rest_framework import serializers

from inventory.models import AdjustmentType, StockAdjustmentLog


class StockAdjustmentLogSerializer(serializers.ModelSerializer):
    ingredient_name = serializers.CharField(source='ingredient.name', read_only=True)
    purchase_unit = serializers.CharField(source='ingredient.purchase_unit', read_only=True)

    class Meta:
        model = StockAdjustmentLog
        fields = [
            'id', 'ingredient', 'ingredient_name', 'purchase_unit',
            'quantity', 'adjustment_type', 'reason', 'reference_id', 'created_at',
        ]
        read_only_fields = fields


class StockAdjustmentRequestSerializer(serializers.Serializer):
    """
    Manual adjustment from the stock dialog.

    ``quantity`` is signed: receive stock with a positive number, record
    spoilage or loss with a negative one.
    """
    ingredient_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4)
    adjustment_type = serializers.ChoiceField(choices=AdjustmentType.choices)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    timestamp = serializers.DateTimeField(required=False, allow_null=True, default=None)

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("Quantity cannot be zero.")
        return value


class RebuildStockRequestSerializer(serializers.Serializer):
    ingredient_ids = serializers.ListField(
        child=serializers.IntegerField(), required=False, allow_null=True, default=None
    )
    dry_run = serializers.BooleanField(required=False, default=False)


class StockDriftSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    ingredient_name = serializers.CharField()
    cached_stock = serializers.DecimalField(max_digits=18, decimal_places=4)
    ledger_stock = serializers.DecimalField(max_digits=18, decimal_places=4)
    difference = serializers.DecimalField(max_digits=18, decimal_places=4)


class InventoryValuationSerializer(serializers.Serializer):
    total_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    ingredient_count = serializers.IntegerField()
    below_safety_stock_count = serializers.IntegerField()
