from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['item_subtotal']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'client', 'building_name', 'status', 'total', 'submitted_by', 'created_at']
    list_filter = ['status', 'client', 'created_at']
    search_fields = ['order_number', 'purchase_order_number', 'building_name', 'client__name']
    ordering = ['-created_at']
    inlines = [OrderItemInline]
    readonly_fields = ['subtotal', 'tax_amount', 'total', 'duplicated_from', 'created_at', 'updated_at']
