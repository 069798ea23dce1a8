from rest_framework import serializers

from orders.models import Order, OrderItem, SalesDailyAggregate


class OrderItemSerializer(serializers.ModelSerializer):
    recipe_name = serializers.CharField(source='recipe.name', read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'recipe', 'recipe_name', 'quantity', 'unit_price']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    gross_profit = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status',
            'total_amount', 'total_cost', 'gross_profit',
            'sale_date', 'created_at', 'cancelled_at', 'items',
        ]

    def get_gross_profit(self, obj):
        return str(obj.total_amount - obj.total_cost)


class OrderItemInputSerializer(serializers.Serializer):
    recipe_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=4)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True, default=None
    )


class OrderCreateSerializer(serializers.Serializer):
    """
    Request body for POST /api/orders/
    """
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    sale_date = serializers.DateField(required=False, allow_null=True, default=None)
    total_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=0, required=False, allow_null=True, default=None
    )


class BatchProductionSerializer(serializers.Serializer):
    recipe_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=4)


class ProductionResultSerializer(serializers.Serializer):
    recipe_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=4)
    reference_id = serializers.CharField()
    total_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    usage = serializers.SerializerMethodField()

    def get_usage(self, obj):
        return {str(ingredient_id): str(quantity) for ingredient_id, quantity in obj.usage.items()}


class SalesDailyAggregateSerializer(serializers.ModelSerializer):
    gross_profit = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = SalesDailyAggregate
        fields = ['sales_date', 'daily_revenue', 'daily_cogs', 'gross_profit', 'order_count', 'memo']


class SalesManualEntrySerializer(serializers.Serializer):
    """
    Request body for PUT /api/orders/sales/

    Omitted fields keep their stored value; COGS is never accepted here.
    """
    sales_date = serializers.DateField()
    daily_revenue = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=0, required=False)
    memo = serializers.CharField(required=False, allow_blank=True)
