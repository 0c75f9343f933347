from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from portal.clients.models import Client, Building
from portal.catalog.models import Product
from .pricing import DEFAULT_TAX_RATE
from .status import OrderStatus, INITIAL_STATUS, status_label, status_badge


class Order(models.Model):
    """Client orders. Totals are stored and always derived from the items."""
    order_number = models.CharField(max_length=100, unique=True)
    purchase_order_number = models.CharField(max_length=100, blank=True)
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name='orders')
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    building = models.ForeignKey(Building, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    building_name = models.CharField(max_length=200, blank=True)

    # Contact
    contact_name = models.CharField(max_length=200, blank=True)
    contact_email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)

    # Shipping and billing
    shipping_type = models.CharField(max_length=100, blank=True)
    billing = models.CharField(max_length=200, blank=True)
    address1 = models.CharField(max_length=255, blank=True)
    address2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)
    zip = models.CharField(max_length=20, blank=True)

    special_instructions = models.TextField(blank=True)
    comments = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=INITIAL_STATUS, db_index=True)
    tax_rate = models.DecimalField(
        max_digits=6, decimal_places=4, default=DEFAULT_TAX_RATE, validators=[MinValueValidator(Decimal('0'))]
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    duplicated_from = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='duplicates'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    @property
    def status_label(self):
        return status_label(self.status)

    @property
    def status_color(self):
        return status_badge(self.status)[1]

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['client', '-created_at'], name='idx_order_client_created'),
        ]


class OrderItem(models.Model):
    """
    A priced line of an order.

    Item code, description and unit price are snapshots taken at submission;
    the product link is kept for reference only.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    tenant = models.CharField(max_length=200, blank=True)
    item_code = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    unit_price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))]
    )
    units_ordered = models.PositiveIntegerField(default=1)
    item_subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    position = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.order.order_number} - {self.item_code} x {self.units_ordered}"

    @property
    def quantity(self):
        return self.units_ordered

    class Meta:
        db_table = 'order_items'
        ordering = ['position', 'id']
