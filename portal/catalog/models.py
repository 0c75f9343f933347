from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from portal.clients.models import Client
from .validators import validate_specifications


class Category(models.Model):
    """Product categories (Ballast, Lamps, Fixtures, ...)"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['sort_order', 'name']


class Subcategory(models.Model):
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='subcategories')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.category.name} / {self.name}"

    class Meta:
        db_table = 'subcategories'
        verbose_name_plural = 'subcategories'
        ordering = ['sort_order', 'name']
        unique_together = [['category', 'name']]


class Product(models.Model):
    """Catalog product. Orders keep their own price/description snapshot."""
    STATUS_AVAILABLE = 'available'
    STATUS_DISABLED = 'disabled'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_DISABLED, 'Disabled'),
    ]

    item_number = models.CharField(max_length=100, unique=True, db_index=True)
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    manufacturer = models.CharField(max_length=200, blank=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    subcategory = models.ForeignKey(Subcategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    unit_type = models.CharField(max_length=50, blank=True)
    base_unit_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                          validators=[MinValueValidator(Decimal('0.00'))])
    units_per_case = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    case_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                     validators=[MinValueValidator(Decimal('0.00'))])
    specifications = models.JSONField(default=dict, blank=True, validators=[validate_specifications])
    image_url = models.URLField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.item_number})"

    @property
    def is_available(self):
        return self.status == self.STATUS_AVAILABLE

    class Meta:
        db_table = 'products'
        ordering = ['name']


class ClientProductAssignment(models.Model):
    """Grants a client visibility of a product, optionally at a client-specific price"""
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='product_assignments')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='assignments')
    client_unit_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                            validators=[MinValueValidator(Decimal('0.00'))])
    client_case_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                            validators=[MinValueValidator(Decimal('0.00'))])
    client_units_per_case = models.PositiveIntegerField(null=True, blank=True)
    assigned_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='product_assignments')
    assigned_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.client.name} - {self.product.item_number}"

    class Meta:
        db_table = 'client_product_assignments'
        unique_together = [['client', 'product']]
        indexes = [
            models.Index(fields=['client', 'product'], name='idx_assignment_client_product'),
        ]
