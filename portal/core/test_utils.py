"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from portal.catalog.models import Category, Subcategory, Product, ClientProductAssignment
from portal.clients.models import Client, Building
from portal.orders.models import Order, OrderItem
from portal.orders.pricing import calculate_totals, line_subtotal

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role=User.ROLE_CLIENT, client=None,
                    is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            client=client,
            is_staff=is_staff,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_owner(username=None, password='testpass123'):
        """Create a distributor owner/admin"""
        return TestDataFactory.create_user(username=username, password=password, role=User.ROLE_OWNER, is_staff=True)

    @staticmethod
    def create_client_user(client=None, username=None, password='testpass123'):
        """Create a user belonging to a client (a new client when none is given)"""
        if client is None:
            client = TestDataFactory.create_client()
        return TestDataFactory.create_user(username=username, password=password, role=User.ROLE_CLIENT, client=client)

    @staticmethod
    def create_client(name=None, is_active=True):
        """Create a test client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return Client.objects.create(
            name=name,
            contact_name='Facilities Manager',
            contact_email=f'{name.lower()}@example.com',
            phone='415-555-0100',
            is_active=is_active,
        )

    @staticmethod
    def create_building(client, name=None, address=None):
        """Create a test building"""
        if not name:
            name = f'Building_{TestDataFactory.random_string(6)}'
        return Building.objects.create(client=client, name=name, address=address or f'{name} Street')

    @staticmethod
    def create_category(name=None, sort_order=0):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, description=f'Test category {name}', sort_order=sort_order)

    @staticmethod
    def create_subcategory(category, name=None):
        if not name:
            name = f'Subcategory_{TestDataFactory.random_string(6)}'
        return Subcategory.objects.create(category=category, name=name)

    @staticmethod
    def create_product(name=None, item_number=None, category=None, subcategory=None,
                       base_unit_price=Decimal('10.00'), description='', status=Product.STATUS_AVAILABLE, **extra):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not item_number:
            item_number = f'ITEM-{TestDataFactory.random_string(8).upper()}'
        return Product.objects.create(
            name=name,
            item_number=item_number,
            description=description,
            category=category,
            subcategory=subcategory,
            base_unit_price=base_unit_price,
            status=status,
            **extra,
        )

    @staticmethod
    def create_assignment(client, product, client_unit_price=None, assigned_by=None, **extra):
        """Assign a product to a client"""
        return ClientProductAssignment.objects.create(
            client=client,
            product=product,
            client_unit_price=client_unit_price,
            assigned_by=assigned_by,
            **extra,
        )

    @staticmethod
    def create_order(client, user=None, order_number=None, items=None, status='PENDING', tax_rate=Decimal('0.085'),
                     **extra):
        """
        Create a stored order directly.

        items: list of (item_code, unit_price, units_ordered) tuples
        """
        if not order_number:
            order_number = f'PO {random.randint(100000, 899999)}'
        items = items or []
        totals = calculate_totals([(price, qty) for _, price, qty in items], tax_rate)
        order = Order.objects.create(
            order_number=order_number,
            client=client,
            submitted_by=user,
            status=status,
            tax_rate=tax_rate,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total=totals.total,
            **extra,
        )
        for position, (item_code, unit_price, units_ordered) in enumerate(items):
            OrderItem.objects.create(
                order=order,
                item_code=item_code,
                description=f'Description of {item_code}',
                unit_price=unit_price,
                units_ordered=units_ordered,
                item_subtotal=line_subtotal(unit_price, units_ordered),
                position=position,
            )
        return order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
