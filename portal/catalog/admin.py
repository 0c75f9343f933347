from django.contrib import admin
from .models import Category, Subcategory, Product, ClientProductAssignment


class SubcategoryInline(admin.TabularInline):
    model = Subcategory
    extra = 1


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'sort_order', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name']
    ordering = ['sort_order', 'name']
    inlines = [SubcategoryInline]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['item_number', 'name', 'manufacturer', 'category', 'base_unit_price', 'status', 'created_at']
    list_filter = ['status', 'category', 'manufacturer', 'created_at']
    search_fields = ['item_number', 'name', 'description']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(ClientProductAssignment)
class ClientProductAssignmentAdmin(admin.ModelAdmin):
    list_display = ['client', 'product', 'client_unit_price', 'client_case_price', 'assigned_by', 'assigned_at']
    list_filter = ['client', 'assigned_at']
    search_fields = ['client__name', 'product__item_number', 'product__name']
    ordering = ['client', 'product']
    readonly_fields = ['assigned_at', 'updated_at']
