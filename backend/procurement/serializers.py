from rest_framework import serializers

from procurement.models import Purchase, PurchaseItem


class PurchaseItemSerializer(serializers.ModelSerializer):
    ingredient_name = serializers.CharField(source='ingredient.name', read_only=True)
    purchase_unit = serializers.CharField(source='ingredient.purchase_unit', read_only=True)

    class Meta:
        model = PurchaseItem
        fields = ['id', 'ingredient', 'ingredient_name', 'purchase_unit', 'quantity', 'unit_price']


class PurchaseSerializer(serializers.ModelSerializer):
    items = PurchaseItemSerializer(many=True, read_only=True)

    class Meta:
        model = Purchase
        fields = ['id', 'supplier_name', 'purchase_date', 'total_amount', 'memo', 'items', 'created_at']


class PurchaseItemInputSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4, min_value=0)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=4, min_value=0)


class PurchaseCreateSerializer(serializers.Serializer):
    """
    Request body for POST /api/procurement/purchases/
    """
    supplier_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    purchase_date = serializers.DateField(required=False, allow_null=True, default=None)
    memo = serializers.CharField(required=False, allow_blank=True, default="")
    items = PurchaseItemInputSerializer(many=True, allow_empty=False)
