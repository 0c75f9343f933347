"""
Tests for authentication, users, the request actor and audit logging
"""
from types import SimpleNamespace

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, SimpleTestCase
from django.urls import reverse
from rest_framework import status

from portal.core.context import Actor, actor_for_user, ROLE_OWNER, ROLE_CLIENT
from portal.core.models import AuditLog, User
from portal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from portal.core.utils import create_audit_log, get_client_ip


class ActorTests(SimpleTestCase):
    def test_owner_can_access_any_client(self):
        actor = Actor(id=1, role=ROLE_OWNER)
        self.assertTrue(actor.is_owner)
        self.assertTrue(actor.can_access_client(42))

    def test_client_user_limited_to_own_client(self):
        actor = Actor(id=2, role=ROLE_CLIENT, client_id=7)
        self.assertTrue(actor.is_client)
        self.assertTrue(actor.can_access_client(7))
        self.assertFalse(actor.can_access_client(8))

    def test_client_user_without_client_sees_nothing(self):
        actor = Actor(id=3, role=ROLE_CLIENT)
        self.assertFalse(actor.can_access_client(None))

    def test_anonymous_user_has_no_actor(self):
        self.assertIsNone(actor_for_user(AnonymousUser()))
        self.assertIsNone(actor_for_user(None))

    def test_actor_from_user_fields(self):
        user = SimpleNamespace(pk=5, role=ROLE_CLIENT, client_id=9, is_authenticated=True)
        self.assertEqual(actor_for_user(user), Actor(id=5, role=ROLE_CLIENT, client_id=9))


class AuditLogTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()

    def test_create_audit_log(self):
        log = create_audit_log(
            user=self.owner,
            action='order_submit',
            model_name='Order',
            object_id=12,
            object_reference='PO 1',
            changes={'total': '27.67'},
        )
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '12')
        self.assertEqual(log.user, self.owner)

    def test_missing_fields_skip_log(self):
        self.assertIsNone(create_audit_log(user=self.owner, action='update'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_client_ip_prefers_forwarded_header(self):
        request = SimpleNamespace(META={'HTTP_X_FORWARDED_FOR': '10.0.0.1, 10.0.0.2', 'REMOTE_ADDR': '127.0.0.1'})
        self.assertEqual(get_client_ip(request), '10.0.0.1')
        self.assertIsNone(get_client_ip(None))


class AuthAPITests(TestCase):
    def setUp(self):
        self.client_obj = TestDataFactory.create_client()
        self.user = TestDataFactory.create_client_user(client=self.client_obj, username='molly', password='testpass123')
        self.api = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        response = self.api.post(
            reverse('token_obtain_pair'), {'username': 'molly', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], User.ROLE_CLIENT)
        self.assertEqual(response.data['user']['client'], self.client_obj.id)

    def test_login_wrong_password(self):
        response = self.api.post(
            reverse('token_obtain_pair'), {'username': 'molly', 'password': 'nope'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        login = self.api.post(
            reverse('token_obtain_pair'), {'username': 'molly', 'password': 'testpass123'}, format='json'
        )
        response = self.api.post(reverse('token_refresh'), {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_authentication(self):
        response = self.api.get(reverse('user-me'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        self.api.authenticate_user(self.user)
        response = self.api.get(reverse('user-me'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'molly')
        self.assertEqual(response.data['client_name'], self.client_obj.name)
        self.assertFalse(response.data['is_owner'])
        self.assertFalse(response.data['can_change_order_status'])


class UserAPITests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client_obj = TestDataFactory.create_client()
        self.api = AuthenticatedAPIClient().authenticate_user(self.owner)

    def test_client_user_cannot_list_users(self):
        member = TestDataFactory.create_client_user(client=self.client_obj)
        self.api.authenticate_user(member)
        response = self.api.get(reverse('user-list-create'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_client_user(self):
        response = self.api.post(reverse('user-list-create'), {
            'username': 'newbuyer',
            'email': 'buyer@example.com',
            'role': 'client',
            'client': self.client_obj.id,
            'password': 'Lumens-2600-life',
            'password_confirm': 'Lumens-2600-life',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='newbuyer')
        self.assertTrue(user.check_password('Lumens-2600-life'))
        self.assertEqual(user.client, self.client_obj)

    def test_client_role_requires_client(self):
        response = self.api.post(reverse('user-list-create'), {
            'username': 'orphan',
            'role': 'client',
            'password': 'Lumens-2600-life',
            'password_confirm': 'Lumens-2600-life',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('client', response.data)

    def test_password_mismatch(self):
        response = self.api.post(reverse('user-list-create'), {
            'username': 'typo',
            'role': 'owner',
            'password': 'Lumens-2600-life',
            'password_confirm': 'Lumens-2600-lif',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_deactivates(self):
        member = TestDataFactory.create_client_user(client=self.client_obj)
        response = self.api.delete(reverse('user-detail', args=[member.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        member.refresh_from_db()
        self.assertFalse(member.is_active)

    def test_audit_log_list_filters_by_action(self):
        create_audit_log(user=self.owner, action='order_submit', model_name='Order', object_id=1,
                         object_reference='PO 1')
        create_audit_log(user=self.owner, action='assignment_add', model_name='ClientProductAssignment',
                         object_id=2, object_reference='91496')
        response = self.api.get(reverse('audit-log-list'), {'action': 'order_submit'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_reference'], 'PO 1')
