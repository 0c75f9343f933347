from django.contrib import admin
from .models import Client, Building


class BuildingInline(admin.TabularInline):
    model = Building
    extra = 1


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_name', 'contact_email', 'phone', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'contact_name', 'contact_email']
    ordering = ['name']
    inlines = [BuildingInline]
    readonly_fields = ['created_at', 'updated_at']
