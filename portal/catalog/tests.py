"""
Tests for the catalog: specification validation, client catalogs,
product assignments and their caching
"""
from decimal import Decimal

from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.test import TestCase, SimpleTestCase
from django.urls import reverse
from rest_framework import status

from portal.catalog.models import Product, ClientProductAssignment
from portal.catalog.services import (
    get_client_products, assign_product, remove_assignment, bulk_assign, product_categories,
)
from portal.catalog.validators import specification_errors, validate_specifications
from portal.core.models import AuditLog
from portal.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class SpecificationValidationTests(SimpleTestCase):
    def test_scalar_values_accepted(self):
        specs = {'Wattage': 32, 'Lumens': 2600.5, 'Dimmable': True, 'Base': 'G13'}
        self.assertEqual(specification_errors(specs), [])
        validate_specifications(specs)

    def test_empty_mapping_accepted(self):
        self.assertEqual(specification_errors({}), [])

    def test_nested_and_null_values_rejected(self):
        errors = specification_errors({'Sizes': [1, 2], 'Extra': {'a': 1}, 'Color': None})
        self.assertEqual(len(errors), 3)

    def test_non_mapping_rejected(self):
        with self.assertRaises(ValidationError):
            validate_specifications(['Wattage', 32])

    def test_blank_name_rejected(self):
        self.assertEqual(len(specification_errors({' ': 'x'})), 1)

    def test_non_finite_number_rejected(self):
        self.assertEqual(len(specification_errors({'Lumens': float('inf')})), 1)


class ClientCatalogServiceTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client_obj = TestDataFactory.create_client()
        self.lamps = TestDataFactory.create_category(name='Lamps')
        self.ballast = TestDataFactory.create_category(name='Ballast')
        self.led = TestDataFactory.create_product(
            name='LED T8', item_number='91496', description='GE LED2T8/G/4/835 2600 Lumens',
            category=self.lamps, base_unit_price=Decimal('12.00'),
        )
        self.ballast_product = TestDataFactory.create_product(
            name='Electronic Ballast', item_number='B-232', category=self.ballast, base_unit_price=Decimal('20.00'),
        )
        self.disabled = TestDataFactory.create_product(
            name='Old Lamp', item_number='OLD-1', category=self.lamps, status=Product.STATUS_DISABLED,
        )
        self.unassigned = TestDataFactory.create_product(name='Not Yours', category=self.lamps)
        TestDataFactory.create_assignment(self.client_obj, self.led, client_unit_price=Decimal('10.83'))
        TestDataFactory.create_assignment(self.client_obj, self.ballast_product)
        TestDataFactory.create_assignment(self.client_obj, self.disabled)

    def test_only_available_assigned_products_ordered_by_name(self):
        products = get_client_products(self.client_obj.id)
        self.assertEqual([p.item_number for p in products], ['B-232', '91496'])

    def test_client_price_overrides_base_price(self):
        prices = {p.item_number: p.client_price for p in get_client_products(self.client_obj.id)}
        self.assertEqual(prices['91496'], Decimal('10.83'))
        self.assertEqual(prices['B-232'], Decimal('20.00'))

    def test_search_is_case_insensitive_over_number_name_description(self):
        self.assertEqual(
            [p.item_number for p in get_client_products(self.client_obj.id, {'search': 'lumens'})], ['91496']
        )
        self.assertEqual(
            [p.item_number for p in get_client_products(self.client_obj.id, {'search': 'b-2'})], ['B-232']
        )

    def test_category_filter_by_name_or_id_and_all(self):
        by_name = get_client_products(self.client_obj.id, {'category': 'ballast'})
        self.assertEqual([p.item_number for p in by_name], ['B-232'])
        by_id = get_client_products(self.client_obj.id, {'category': str(self.lamps.id)})
        self.assertEqual([p.item_number for p in by_id], ['91496'])
        self.assertEqual(len(get_client_products(self.client_obj.id, {'category': 'all'})), 2)

    def test_client_without_assignments_has_empty_catalog(self):
        other = TestDataFactory.create_client()
        self.assertEqual(get_client_products(other.id), [])

    def test_assign_is_idempotent(self):
        assignment, created = assign_product(self.client_obj, self.unassigned, user=self.owner)
        self.assertTrue(created)
        again, created_again = assign_product(self.client_obj, self.unassigned, user=self.owner)
        self.assertFalse(created_again)
        self.assertEqual(again.pk, assignment.pk)
        self.assertEqual(AuditLog.objects.filter(action='assignment_add').count(), 1)

    def test_remove_assignment(self):
        self.assertTrue(remove_assignment(self.client_obj, self.led, user=self.owner))
        self.assertFalse(remove_assignment(self.client_obj, self.led, user=self.owner))
        self.assertEqual(AuditLog.objects.filter(action='assignment_remove').count(), 1)

    def test_bulk_assign_skips_existing(self):
        extra = TestDataFactory.create_product()
        created = bulk_assign(self.client_obj, [self.led.id, extra.id, self.unassigned.id], user=self.owner)
        self.assertEqual(sorted(a.product_id for a in created), sorted([extra.id, self.unassigned.id]))
        self.assertEqual(ClientProductAssignment.objects.filter(client=self.client_obj).count(), 5)

    def test_product_categories(self):
        TestDataFactory.create_category(name='Empty')
        self.assertEqual(sorted(product_categories()), ['Ballast', 'Lamps'])


class ClientCatalogAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.owner = TestDataFactory.create_owner()
        self.client_obj = TestDataFactory.create_client()
        self.other_client = TestDataFactory.create_client()
        self.member = TestDataFactory.create_client_user(client=self.client_obj)
        self.product = TestDataFactory.create_product(item_number='91496', base_unit_price=Decimal('12.00'))
        self.assignment = TestDataFactory.create_assignment(self.client_obj, self.product)
        self.api = AuthenticatedAPIClient()

    def catalog_url(self, client=None):
        return reverse('client-products', args=[(client or self.client_obj).id])

    def test_member_sees_catalog_at_client_price(self):
        self.api.authenticate_user(self.member)
        response = self.api.get(self.catalog_url())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['unit_price'], '12.00')
        self.assertFalse(response.data[0]['has_client_price'])

    def test_member_cannot_see_other_client_catalog(self):
        self.api.authenticate_user(self.member)
        response = self.api.get(self.catalog_url(self.other_client))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_price_override_invalidates_cached_catalog(self):
        self.api.authenticate_user(self.member)
        self.assertEqual(self.api.get(self.catalog_url()).data[0]['unit_price'], '12.00')

        self.api.authenticate_user(self.owner)
        url = reverse('client-product-detail', args=[self.client_obj.id, self.product.id])
        response = self.api.patch(url, {'client_unit_price': '10.83'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['client_unit_price'], '10.83')

        self.api.authenticate_user(self.member)
        refreshed = self.api.get(self.catalog_url())
        self.assertEqual(refreshed.data[0]['unit_price'], '10.83')
        self.assertTrue(refreshed.data[0]['has_client_price'])

    def test_catalog_change_leaves_unrelated_cache_entries(self):
        cache.set('session:unrelated', 'keep me', None)
        self.api.authenticate_user(self.member)
        self.api.get(self.catalog_url())

        self.product.base_unit_price = Decimal('15.00')
        self.product.save()

        self.assertEqual(cache.get('session:unrelated'), 'keep me')
        self.assertEqual(self.api.get(self.catalog_url()).data[0]['unit_price'], '15.00')

    def test_disabling_product_removes_it_from_catalog(self):
        self.api.authenticate_user(self.member)
        self.assertEqual(len(self.api.get(self.catalog_url()).data), 1)
        self.product.status = Product.STATUS_DISABLED
        self.product.save()
        self.assertEqual(self.api.get(self.catalog_url()).data, [])

    def test_owner_assigns_product(self):
        new_product = TestDataFactory.create_product()
        self.api.authenticate_user(self.owner)
        response = self.api.post(self.catalog_url(), {'product': new_product.id, 'client_unit_price': '5.50'},
                                 format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['client_unit_price'], '5.50')
        again = self.api.post(self.catalog_url(), {'product': new_product.id}, format='json')
        self.assertEqual(again.status_code, status.HTTP_200_OK)

    def test_assign_requires_product(self):
        self.api.authenticate_user(self.owner)
        response = self.api.post(self.catalog_url(), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_member_cannot_assign(self):
        new_product = TestDataFactory.create_product()
        self.api.authenticate_user(self.member)
        response = self.api.post(self.catalog_url(), {'product': new_product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_negative_override_rejected(self):
        self.api.authenticate_user(self.owner)
        url = reverse('client-product-detail', args=[self.client_obj.id, self.product.id])
        response = self.api.patch(url, {'client_unit_price': '-1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unassign(self):
        self.api.authenticate_user(self.owner)
        url = reverse('client-product-detail', args=[self.client_obj.id, self.product.id])
        self.assertEqual(self.api.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.api.delete(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_bulk_assign_endpoint(self):
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        self.api.authenticate_user(self.owner)
        response = self.api.post(
            reverse('client-products-bulk-assign', args=[self.client_obj.id]),
            {'product_ids': [self.product.id, first.id, second.id]},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assigned'], 2)
        self.assertEqual(response.data['skipped'], 1)

    def test_product_assignments_listing(self):
        self.api.authenticate_user(self.owner)
        response = self.api.get(reverse('product-assignments', args=[self.product.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([a['client'] for a in response.data], [self.client_obj.id])


class ProductAPITests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.api = AuthenticatedAPIClient().authenticate_user(self.owner)
        self.category = TestDataFactory.create_category(name='Lamps')

    def test_create_product_with_specifications(self):
        response = self.api.post(reverse('product-list-create'), {
            'item_number': '91496',
            'name': 'LED T8',
            'category': self.category.id,
            'base_unit_price': '10.83',
            'specifications': {'Wattage': 14, 'Color Temperature': '3500K', 'Dimmable': False},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get(item_number='91496')
        self.assertEqual(list(product.specifications), ['Wattage', 'Color Temperature', 'Dimmable'])
        self.assertTrue(AuditLog.objects.filter(action='create', object_reference='91496').exists())

    def test_invalid_specifications_rejected(self):
        response = self.api.post(reverse('product-list-create'), {
            'item_number': 'X-1',
            'name': 'Broken',
            'specifications': {'Sizes': [1, 2]},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('specifications', response.data)

    def test_negative_price_rejected(self):
        response = self.api.post(reverse('product-list-create'), {
            'item_number': 'X-2', 'name': 'Negative', 'base_unit_price': '-1.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_subcategory_must_match_category(self):
        other = TestDataFactory.create_category(name='Ballast')
        sub = TestDataFactory.create_subcategory(other, name='Electronic')
        response = self.api.post(reverse('product-list-create'), {
            'item_number': 'X-3', 'name': 'Mismatch', 'category': self.category.id, 'subcategory': sub.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_by_search(self):
        TestDataFactory.create_product(name='LED T8', item_number='91496', category=self.category)
        TestDataFactory.create_product(name='Ballast', item_number='B-1')
        response = self.api.get(reverse('product-list-create'), {'search': 't8'})
        self.assertEqual([p['item_number'] for p in response.data], ['91496'])
        self.assertEqual(response.data[0]['assignments_count'], 0)

    def test_client_user_cannot_manage_products(self):
        member = TestDataFactory.create_client_user()
        self.api.authenticate_user(member)
        response = self.api.get(reverse('product-list-create'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_categories_readable_by_client_users(self):
        TestDataFactory.create_subcategory(self.category, name='T8')
        member = TestDataFactory.create_client_user()
        self.api.authenticate_user(member)
        response = self.api.get(reverse('category-list-create'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['subcategories'][0]['name'], 'T8')
        denied = self.api.post(reverse('category-list-create'), {'name': 'Fixtures'}, format='json')
        self.assertEqual(denied.status_code, status.HTTP_403_FORBIDDEN)
