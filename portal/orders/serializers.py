from decimal import Decimal

from rest_framework import serializers

from portal.clients.models import Client, Building
from portal.catalog.models import Product
from .models import Order, OrderItem
from .status import OrderStatus


class OrderItemSerializer(serializers.ModelSerializer):
    quantity = serializers.IntegerField(source='units_ordered', read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'tenant', 'item_code', 'description', 'unit_price', 'units_ordered',
                  'quantity', 'item_subtotal', 'position']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True)
    submitted_by_name = serializers.CharField(source='submitted_by.username', read_only=True, allow_null=True)
    duplicated_from_number = serializers.CharField(source='duplicated_from.order_number', read_only=True,
                                                   allow_null=True)
    status_label = serializers.CharField(read_only=True)
    status_color = serializers.CharField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'purchase_order_number', 'client', 'client_name',
            'submitted_by', 'submitted_by_name', 'building', 'building_name',
            'contact_name', 'contact_email', 'phone',
            'shipping_type', 'billing', 'address1', 'address2', 'city', 'state', 'zip',
            'special_instructions', 'comments', 'notes',
            'status', 'status_label', 'status_color',
            'tax_rate', 'subtotal', 'tax_amount', 'total',
            'duplicated_from', 'duplicated_from_number', 'items', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight order serializer for list views"""
    client_name = serializers.CharField(source='client.name', read_only=True)
    submitted_by_name = serializers.CharField(source='submitted_by.username', read_only=True, allow_null=True)
    status_label = serializers.CharField(read_only=True)
    status_color = serializers.CharField(read_only=True)
    items_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'purchase_order_number', 'client', 'client_name', 'submitted_by_name',
            'building_name', 'status', 'status_label', 'status_color', 'subtotal', 'tax_amount', 'total',
            'items_count', 'created_at',
        ]
        read_only_fields = fields


class OrderLineSerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)
    tenant = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class QuoteSerializer(serializers.Serializer):
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all(), required=False)
    lines = OrderLineSerializer(many=True)


class OrderSubmitSerializer(serializers.Serializer):
    """Payload for placing an order: header fields plus product lines"""
    client = serializers.PrimaryKeyRelatedField(queryset=Client.objects.all(), required=False)
    building = serializers.PrimaryKeyRelatedField(queryset=Building.objects.all(), required=False, allow_null=True)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    lines = OrderLineSerializer(many=True, allow_empty=False)

    purchase_order_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    building_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    contact_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    contact_email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    shipping_type = serializers.CharField(max_length=100, required=False, allow_blank=True)
    billing = serializers.CharField(max_length=200, required=False, allow_blank=True)
    address1 = serializers.CharField(max_length=255, required=False, allow_blank=True)
    address2 = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=50, required=False, allow_blank=True)
    zip = serializers.CharField(max_length=20, required=False, allow_blank=True)
    special_instructions = serializers.CharField(required=False, allow_blank=True)
    comments = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class OrderUpdateSerializer(serializers.ModelSerializer):
    """Owner edits of order header fields; money and status have their own endpoints"""

    class Meta:
        model = Order
        fields = [
            'purchase_order_number', 'building', 'building_name', 'contact_name', 'contact_email', 'phone',
            'shipping_type', 'billing', 'address1', 'address2', 'city', 'state', 'zip',
            'special_instructions', 'comments', 'notes',
        ]

    def validate_building(self, value):
        if value is not None and self.instance is not None and value.client_id != self.instance.client_id:
            raise serializers.ValidationError('Building does not belong to this client')
        return value


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.IntegerField(required=False, allow_null=True)
    tenant = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    item_code = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    units_ordered = serializers.IntegerField(min_value=0)

    def validate_product(self, value):
        if value is not None and not Product.objects.filter(pk=value).exists():
            raise serializers.ValidationError('Product not found')
        return value


class OrderItemsReplaceSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True)
