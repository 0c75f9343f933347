"""
Tests for client management, buildings and the client portal summary
"""
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status

from portal.clients.models import Client, Building
from portal.clients.services import client_portal_summary, clients_with_counts
from portal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from portal.orders.models import Order


class ClientSummaryTests(TestCase):
    def setUp(self):
        self.client_obj = TestDataFactory.create_client(name='Paramount Group')
        lamps = TestDataFactory.create_category(name='Lamps')
        ballast = TestDataFactory.create_category(name='Ballast')
        for category in (lamps, lamps, ballast):
            product = TestDataFactory.create_product(category=category)
            TestDataFactory.create_assignment(self.client_obj, product)
        for n in range(7):
            TestDataFactory.create_order(
                self.client_obj, order_number=f'PO {1000 + n}', items=[('91496', Decimal('10.83'), 2)]
            )

    def test_summary_parts(self):
        summary = client_portal_summary(self.client_obj)
        self.assertEqual(summary['client'], {'id': self.client_obj.id, 'name': 'Paramount Group'})
        self.assertEqual(summary['total_products'], 3)
        self.assertEqual(summary['total_orders'], 7)
        self.assertEqual(len(summary['recent_orders']), 5)
        self.assertEqual(summary['recent_orders'][0]['status_label'], 'In Arrears')
        self.assertEqual(summary['recent_orders'][0]['items_count'], 1)
        self.assertEqual(summary['product_categories'], ['Ballast', 'Lamps'])

    def test_failed_part_degrades_to_empty(self):
        with mock.patch.object(Order.objects, 'filter', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('portal.clients.services', level='ERROR'):
                summary = client_portal_summary(self.client_obj)
        self.assertEqual(summary['total_orders'], 0)
        self.assertEqual(summary['recent_orders'], [])
        self.assertEqual(summary['total_products'], 3)
        self.assertEqual(summary['product_categories'], ['Ballast', 'Lamps'])

    def test_counts_annotation(self):
        client = clients_with_counts().get(pk=self.client_obj.pk)
        self.assertEqual(client.orders_count, 7)
        self.assertEqual(client.products_count, 3)
        self.assertIsNotNone(client.last_order_date)


class ClientAPITests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client_obj = TestDataFactory.create_client(name='Paramount Group')
        self.other_client = TestDataFactory.create_client(name='Beale Street Partners')
        self.member = TestDataFactory.create_client_user(client=self.client_obj)
        self.api = AuthenticatedAPIClient().authenticate_user(self.owner)

    def test_owner_lists_clients_with_counts(self):
        TestDataFactory.create_order(self.client_obj, items=[('A1', Decimal('1.00'), 1)])
        response = self.api.get(reverse('client-list-create'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_name = {c['name']: c for c in response.data}
        self.assertEqual(by_name['Paramount Group']['orders_count'], 1)
        self.assertEqual(by_name['Beale Street Partners']['orders_count'], 0)

    def test_search(self):
        response = self.api.get(reverse('client-list-create'), {'search': 'beale'})
        self.assertEqual([c['name'] for c in response.data], ['Beale Street Partners'])

    def test_create_client(self):
        response = self.api.post(reverse('client-list-create'), {
            'name': '50 Beale',
            'contact_email': 'molly@example.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['orders_count'], 0)
        self.assertTrue(Client.objects.filter(name='50 Beale').exists())

    def test_duplicate_name_rejected(self):
        response = self.api.post(reverse('client-list-create'), {'name': 'Paramount Group'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_user_cannot_list(self):
        self.api.authenticate_user(self.member)
        response = self.api.get(reverse('client-list-create'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_member_sees_own_client_only(self):
        self.api.authenticate_user(self.member)
        own = self.api.get(reverse('client-detail', args=[self.client_obj.id]))
        self.assertEqual(own.status_code, status.HTTP_200_OK)
        other = self.api.get(reverse('client-detail', args=[self.other_client.id]))
        self.assertEqual(other.status_code, status.HTTP_404_NOT_FOUND)

    def test_member_cannot_update(self):
        self.api.authenticate_user(self.member)
        response = self.api.patch(reverse('client-detail', args=[self.client_obj.id]), {'notes': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_refused_with_orders(self):
        TestDataFactory.create_order(self.client_obj)
        response = self.api.delete(reverse('client-detail', args=[self.client_obj.id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.api.delete(reverse('client-detail', args=[self.other_client.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_buildings(self):
        url = reverse('client-buildings', args=[self.client_obj.id])
        response = self.api.post(url, {'name': '50 Beale Street', 'address': 'San Francisco'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        again = self.api.post(url, {'name': '50 Beale Street'}, format='json')
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Building.objects.filter(client=self.client_obj).count(), 1)

        self.api.authenticate_user(self.member)
        listing = self.api.get(url)
        self.assertEqual([b['name'] for b in listing.data], ['50 Beale Street'])

    def test_summary_endpoint(self):
        self.api.authenticate_user(self.member)
        response = self.api.get(reverse('client-summary', args=[self.client_obj.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 0)
        forbidden = self.api.get(reverse('client-summary', args=[self.other_client.id]))
        self.assertEqual(forbidden.status_code, status.HTTP_404_NOT_FOUND)
