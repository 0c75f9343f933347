from decimal import Decimal

from rest_framework import serializers

from .models import Category, Subcategory, Product, ClientProductAssignment
from .validators import specification_errors


class SubcategorySerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = Subcategory
        fields = ['id', 'category', 'category_name', 'name', 'description', 'sort_order', 'is_active',
                  'created_at', 'updated_at']


class CategorySerializer(serializers.ModelSerializer):
    subcategories = SubcategorySerializer(many=True, read_only=True)

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'sort_order', 'is_active', 'created_at', 'updated_at',
                  'subcategories']


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    subcategory_name = serializers.CharField(source='subcategory.name', read_only=True, allow_null=True)
    assignments_count = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'item_number', 'name', 'description', 'manufacturer',
            'category', 'category_name', 'subcategory', 'subcategory_name', 'unit_type',
            'base_unit_price', 'units_per_case', 'case_price', 'specifications', 'image_url', 'status',
            'assignments_count', 'created_at', 'updated_at',
        ]

    def get_assignments_count(self, obj):
        count = getattr(obj, 'assignments_count', None)
        if count is None:
            count = obj.assignments.count()
        return count

    def validate_specifications(self, value):
        errors = specification_errors(value)
        if errors:
            raise serializers.ValidationError(errors)
        return value

    def validate(self, attrs):
        category = attrs.get('category', getattr(self.instance, 'category', None))
        subcategory = attrs.get('subcategory', getattr(self.instance, 'subcategory', None))
        if subcategory is not None and category is not None and subcategory.category_id != category.id:
            raise serializers.ValidationError({'subcategory': 'Subcategory does not belong to the selected category'})
        if subcategory is not None and category is None:
            attrs['category'] = subcategory.category
        return attrs


class ClientProductSerializer(serializers.ModelSerializer):
    """Product as a client sees it: catalog data plus the client's own prices"""
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    subcategory_name = serializers.CharField(source='subcategory.name', read_only=True, allow_null=True)
    unit_price = serializers.DecimalField(source='client_price', max_digits=10, decimal_places=2, read_only=True)
    case_price = serializers.DecimalField(source='client_case_price', max_digits=10, decimal_places=2,
                                          read_only=True, allow_null=True)
    units_per_case = serializers.IntegerField(source='client_units_per_case', read_only=True)
    has_client_price = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'item_number', 'name', 'description', 'manufacturer',
            'category', 'category_name', 'subcategory', 'subcategory_name', 'unit_type',
            'unit_price', 'case_price', 'units_per_case', 'has_client_price',
            'specifications', 'image_url',
        ]

    def get_has_client_price(self, obj):
        return obj.assignment.client_unit_price is not None


class ClientProductAssignmentSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True)
    product_item_number = serializers.CharField(source='product.item_number', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    base_unit_price = serializers.DecimalField(source='product.base_unit_price', max_digits=10, decimal_places=2,
                                               read_only=True)
    assigned_by_name = serializers.CharField(source='assigned_by.username', read_only=True, allow_null=True)
    client_unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True,
                                                 min_value=Decimal('0.00'))
    client_case_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True,
                                                 min_value=Decimal('0.00'))

    class Meta:
        model = ClientProductAssignment
        fields = [
            'id', 'client', 'client_name', 'product', 'product_item_number', 'product_name', 'base_unit_price',
            'client_unit_price', 'client_case_price', 'client_units_per_case',
            'assigned_by', 'assigned_by_name', 'assigned_at', 'updated_at',
        ]
        read_only_fields = ['client', 'product', 'assigned_by', 'assigned_at', 'updated_at']


class BulkAssignSerializer(serializers.Serializer):
    product_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
