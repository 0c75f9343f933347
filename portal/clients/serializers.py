from rest_framework import serializers
from .models import Client, Building


class BuildingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Building
        fields = ['id', 'client', 'name', 'address', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['client', 'created_at', 'updated_at']


class ClientSerializer(serializers.ModelSerializer):
    buildings = BuildingSerializer(many=True, read_only=True)
    orders_count = serializers.IntegerField(read_only=True, default=0)
    products_count = serializers.IntegerField(read_only=True, default=0)
    last_order_date = serializers.DateTimeField(read_only=True, default=None)

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'contact_name', 'contact_email', 'phone', 'address', 'logo_url', 'notes',
            'is_active', 'created_at', 'updated_at', 'buildings',
            'orders_count', 'products_count', 'last_order_date',
        ]
