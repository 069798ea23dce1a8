from rest_framework import serializers


class LossReportParameterSerializer(serializers.Serializer):
    period_days = serializers.IntegerField(min_value=1, max_value=365, required=False)


class DepletionParameterSerializer(serializers.Serializer):
    window_days = serializers.IntegerField(min_value=1, max_value=365, required=False)
    threshold_days = serializers.IntegerField(min_value=0, required=False)


class ForecastParameterSerializer(serializers.Serializer):
    window_days = serializers.IntegerField(min_value=1, max_value=365, required=False)
    horizon_days = serializers.IntegerField(min_value=0, max_value=365, required=False)
    threshold_days = serializers.IntegerField(min_value=0, required=False)


class MenuPerformanceParameterSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, required=False, default=30)


class LossReportRowSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    name = serializers.CharField()
    theoretical_usage = serializers.DecimalField(max_digits=20, decimal_places=4)
    loss_usage = serializers.DecimalField(max_digits=20, decimal_places=4)
    actual_usage = serializers.DecimalField(max_digits=20, decimal_places=4)
    loss_quantity = serializers.DecimalField(max_digits=20, decimal_places=4)
    loss_rate = serializers.DecimalField(max_digits=10, decimal_places=4)
    loss_rate_percent = serializers.DecimalField(max_digits=10, decimal_places=2)
    loss_value = serializers.DecimalField(max_digits=20, decimal_places=2)
    usage_unit = serializers.CharField()
    purchase_unit = serializers.CharField()


class DepletionRowSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    name = serializers.CharField()
    current_stock = serializers.DecimalField(max_digits=20, decimal_places=4)
    daily_rate = serializers.DecimalField(max_digits=20, decimal_places=4)
    days_remaining = serializers.DecimalField(max_digits=20, decimal_places=2, allow_null=True)
    purchase_unit = serializers.CharField()


class SupplierPriceSerializer(serializers.Serializer):
    supplier_name = serializers.CharField()
    average_price = serializers.DecimalField(max_digits=20, decimal_places=2)
    purchase_count = serializers.IntegerField()


class SourcingRowSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    name = serializers.CharField()
    purchase_unit = serializers.CharField()
    best = SupplierPriceSerializer()
    worst = SupplierPriceSerializer()
    saving_per_unit = serializers.DecimalField(max_digits=20, decimal_places=2)
    saving_percent = serializers.DecimalField(max_digits=6, decimal_places=0)
    suppliers = SupplierPriceSerializer(many=True)


class ForecastRowSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    name = serializers.CharField()
    current_stock = serializers.DecimalField(max_digits=20, decimal_places=4)
    safety_stock = serializers.DecimalField(max_digits=20, decimal_places=4)
    average_daily_usage = serializers.DecimalField(max_digits=20, decimal_places=4)
    days_remaining = serializers.DecimalField(max_digits=20, decimal_places=2, allow_null=True)
    suggested_purchase_quantity = serializers.IntegerField()
    purchase_unit = serializers.CharField()


class MenuPerformanceRowSerializer(serializers.Serializer):
    recipe_id = serializers.IntegerField()
    name = serializers.CharField()
    category = serializers.CharField(allow_blank=True)
    selling_price = serializers.DecimalField(max_digits=20, decimal_places=2)
    material_cost = serializers.DecimalField(max_digits=20, decimal_places=2)
    margin = serializers.DecimalField(max_digits=20, decimal_places=2)
    margin_rate = serializers.DecimalField(max_digits=10, decimal_places=2)
    sales_volume = serializers.DecimalField(max_digits=20, decimal_places=4)
    total_profit = serializers.DecimalField(max_digits=20, decimal_places=2)
    quadrant = serializers.CharField()
