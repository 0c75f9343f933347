"""
Comprehensive test suite for ordering
Tests: totals calculation, cart aggregation, status lifecycle, order
submission, item edits, duplication and the order endpoints
"""
from decimal import Decimal
from types import SimpleNamespace

from django.test import TestCase, SimpleTestCase, override_settings
from django.urls import reverse
from rest_framework import status

from portal.core.context import Actor, actor_for_user, ROLE_OWNER, ROLE_CLIENT
from portal.core.models import AuditLog
from portal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from portal.orders.cart import Cart
from portal.orders.exceptions import (
    CartError, PricingError, StatusTransitionError, TransitionNotPermitted, ActionNotPermitted, OrderingError,
)
from portal.orders.models import Order
from portal.orders.pricing import Totals, calculate_totals, line_subtotal, resolve_unit_price
from portal.orders.services import (
    build_cart, change_status, duplicate_order, generate_order_number, next_order_number, quote,
    replace_items, submit_order,
)
from portal.orders.status import (
    OrderStatus, ALLOWED_TRANSITIONS, can_transition, check_initial_status, check_transition, status_badge,
    status_label,
)


def product(pk, price, item_number=None, description=None, name='Lamp'):
    return SimpleNamespace(
        id=pk,
        item_number=item_number or f'ITEM-{pk}',
        name=name,
        description=description if description is not None else f'Product {pk}',
        base_unit_price=Decimal(price),
    )


class PricingTests(SimpleTestCase):
    def test_reference_example(self):
        totals = calculate_totals([(Decimal('10.00'), 2), (Decimal('5.50'), 1)], Decimal('0.085'))
        self.assertEqual(totals, Totals(Decimal('25.50'), Decimal('2.17'), Decimal('27.67')))

    def test_empty_lines_are_zero(self):
        totals = calculate_totals([])
        self.assertEqual(totals.subtotal, Decimal('0.00'))
        self.assertEqual(totals.tax_amount, Decimal('0.00'))
        self.assertEqual(totals.total, Decimal('0.00'))

    def test_order_of_lines_does_not_matter(self):
        lines = [(Decimal('10.83'), 100), (Decimal('0.99'), 3), (Decimal('7.25'), 11)]
        self.assertEqual(calculate_totals(lines), calculate_totals(list(reversed(lines))))

    def test_total_is_subtotal_plus_tax(self):
        totals = calculate_totals([(Decimal('10.83'), 100)])
        self.assertEqual(totals.subtotal, Decimal('1083.00'))
        self.assertEqual(totals.tax_amount, Decimal('92.06'))
        self.assertEqual(totals.total, totals.subtotal + totals.tax_amount)

    def test_tax_rounds_half_up(self):
        # 0.10 * 0.085 = 0.0085 -> 0.01
        self.assertEqual(calculate_totals([(Decimal('0.10'), 1)]).tax_amount, Decimal('0.01'))

    def test_accepts_mappings_and_objects(self):
        totals = calculate_totals([
            {'unit_price': '10.00', 'quantity': 2},
            SimpleNamespace(unit_price=Decimal('5.50'), quantity=1),
        ])
        self.assertEqual(totals.total, Decimal('27.67'))

    def test_zero_quantity_line_contributes_nothing(self):
        self.assertEqual(calculate_totals([(Decimal('9.99'), 0)]).total, Decimal('0.00'))

    def test_invalid_inputs_rejected(self):
        for lines in (
            [(Decimal('-1.00'), 1)],
            [(Decimal('NaN'), 1)],
            [(Decimal('Infinity'), 1)],
            [(Decimal('1.00'), -1)],
            [(Decimal('1.00'), Decimal('1.5'))],
            [(None, 1)],
            [(True, 1)],
        ):
            with self.subTest(lines=lines):
                with self.assertRaises(PricingError):
                    calculate_totals(lines)

    def test_invalid_tax_rate_rejected(self):
        with self.assertRaises(PricingError):
            calculate_totals([], Decimal('-0.01'))
        with self.assertRaises(PricingError):
            calculate_totals([], Decimal('NaN'))

    def test_error_names_the_line(self):
        with self.assertRaisesMessage(PricingError, 'Line 2'):
            calculate_totals([(Decimal('1.00'), 1), (Decimal('-1.00'), 1)])

    def test_malformed_lines_rejected(self):
        for line in ({'unit_price': Decimal('1.00')}, (Decimal('1.00'),), (Decimal('1.00'), 1, 2), None):
            with self.subTest(line=line):
                with self.assertRaisesMessage(PricingError, 'Line 2'):
                    calculate_totals([(Decimal('1.00'), 1), line])

    def test_pricing_error_is_a_value_error(self):
        self.assertTrue(issubclass(PricingError, OrderingError))
        self.assertTrue(issubclass(PricingError, ValueError))

    def test_line_subtotal_rounds_to_cents(self):
        self.assertEqual(line_subtotal(Decimal('0.333'), 3), Decimal('1.00'))

    def test_resolve_unit_price(self):
        self.assertEqual(resolve_unit_price(Decimal('12.00'), Decimal('10.83')), Decimal('10.83'))
        self.assertEqual(resolve_unit_price(Decimal('12.00'), None), Decimal('12.00'))
        self.assertEqual(resolve_unit_price(Decimal('12.00'), Decimal('0.00')), Decimal('0.00'))


class CartTests(SimpleTestCase):
    def setUp(self):
        self.cart = Cart()
        self.lamp = product(1, '10.00')
        self.ballast = product(2, '5.50', description='')

    def test_add_new_product_creates_line(self):
        line = self.cart.add(self.lamp)
        self.assertEqual(line.quantity, 1)
        self.assertEqual(line.unit_price, Decimal('10.00'))
        self.assertEqual(line.total_price, Decimal('10.00'))
        self.assertEqual(line.item_code, 'ITEM-1')

    def test_adding_again_increments_quantity(self):
        self.cart.add(self.lamp)
        line = self.cart.add(self.lamp)
        self.assertEqual(len(self.cart), 1)
        self.assertEqual(line.quantity, 2)
        self.assertEqual(line.total_price, Decimal('20.00'))

    def test_price_override(self):
        line = self.cart.add(self.lamp, price_override=Decimal('8.75'))
        self.assertEqual(line.unit_price, Decimal('8.75'))

    def test_description_falls_back_to_name(self):
        self.assertEqual(self.cart.add(self.ballast).description, 'Lamp')

    def test_totals_follow_every_mutation(self):
        self.cart.add(self.lamp)
        self.cart.increment(self.lamp.id)
        self.cart.add(self.ballast)
        self.assertEqual(self.cart.totals, Totals(Decimal('25.50'), Decimal('2.17'), Decimal('27.67')))
        self.cart.decrement(self.lamp.id)
        self.assertEqual(self.cart.totals.subtotal, Decimal('15.50'))
        self.cart.remove(self.ballast.id)
        self.assertEqual(self.cart.summary().subtotal, Decimal('10.00'))

    def test_decrement_stops_at_one(self):
        self.cart.add(self.lamp)
        line = self.cart.decrement(self.lamp.id)
        self.assertEqual(line.quantity, 1)
        self.assertIn(self.lamp.id, self.cart)

    def test_remove_last_line_empties_cart(self):
        self.cart.add(self.lamp)
        self.cart.remove(self.lamp.id)
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(self.cart.totals.total, Decimal('0.00'))

    def test_unknown_product_rejected(self):
        for operation in (self.cart.increment, self.cart.decrement, self.cart.remove):
            with self.subTest(operation=operation.__name__):
                with self.assertRaises(CartError):
                    operation(99)

    def test_set_quantity(self):
        self.cart.add(self.lamp)
        self.assertEqual(self.cart.set_quantity(self.lamp.id, 4).total_price, Decimal('40.00'))
        with self.assertRaises(CartError):
            self.cart.set_quantity(self.lamp.id, 0)

    def test_clear(self):
        self.cart.add(self.lamp)
        self.cart.add(self.ballast)
        self.cart.clear()
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(self.cart.items, [])


class StatusTests(SimpleTestCase):
    def test_labels(self):
        self.assertEqual(status_label('PENDING'), 'In Arrears')
        self.assertEqual(status_label('PROCESSING'), 'In Process')
        self.assertEqual(status_label('COMPLETED'), 'Invoiced')
        self.assertEqual(status_label('CANCELLED'), 'Cancelled')

    def test_unknown_status_badge(self):
        self.assertEqual(status_badge('ON_HOLD'), ('ON_HOLD', 'gray'))
        self.assertEqual(status_badge('PENDING'), ('In Arrears', 'orange'))

    def test_owner_may_move_between_any_statuses(self):
        for current in OrderStatus.values:
            for target in OrderStatus.values:
                self.assertTrue(can_transition(current, target, ROLE_OWNER))
        self.assertIn(OrderStatus.PENDING, ALLOWED_TRANSITIONS[OrderStatus.COMPLETED])

    def test_client_may_not_transition(self):
        with self.assertRaises(TransitionNotPermitted):
            check_transition('PENDING', 'PROCESSING', ROLE_CLIENT)
        self.assertFalse(can_transition('PENDING', 'CANCELLED', ROLE_CLIENT))

    def test_unknown_status_rejected(self):
        with self.assertRaises(StatusTransitionError):
            check_transition('PENDING', 'SHIPPED', ROLE_OWNER)

    def test_initial_status(self):
        check_initial_status('PENDING', ROLE_CLIENT)
        check_initial_status('PROCESSING', ROLE_OWNER)
        with self.assertRaises(TransitionNotPermitted):
            check_initial_status('PROCESSING', ROLE_CLIENT)

    def test_next_order_number(self):
        self.assertEqual(next_order_number('PO 121212'), 'PO 121213')
        self.assertEqual(next_order_number('1234'), '1235')
        self.assertEqual(next_order_number('PO: 50B-0972-AR'), 'PO: 50B-0972-AR-2')
        self.assertEqual(next_order_number('PO: 50B-0972-AR-2'), 'PO: 50B-0972-AR-3')
        self.assertEqual(next_order_number('ORD-9'), 'ORD-10')


class OrderServiceTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client_obj = TestDataFactory.create_client()
        self.member = TestDataFactory.create_client_user(client=self.client_obj)
        self.owner_actor = actor_for_user(self.owner)
        self.member_actor = actor_for_user(self.member)
        self.building = TestDataFactory.create_building(self.client_obj, name='50 Beale Street')
        self.lamp = TestDataFactory.create_product(
            item_number='91496', description='GE LED2T8/G/4/835', base_unit_price=Decimal('12.00')
        )
        self.ballast = TestDataFactory.create_product(item_number='B-232', base_unit_price=Decimal('5.50'))
        TestDataFactory.create_assignment(self.client_obj, self.lamp, client_unit_price=Decimal('10.00'))
        TestDataFactory.create_assignment(self.client_obj, self.ballast)

    def lines(self):
        return [
            {'product': self.lamp.id, 'quantity': 2, 'tenant': 'Common Areas (All)'},
            {'product': self.ballast.id, 'quantity': 1},
        ]

    def test_generate_order_number_format(self):
        number = generate_order_number()
        self.assertRegex(number, r'^ORD-\d{8}-[0-9A-F]{8}$')

    def test_build_cart_uses_client_prices(self):
        cart, tenants = build_cart(self.client_obj, self.lines(), Decimal('0.085'))
        self.assertEqual(cart.get(self.lamp.id).unit_price, Decimal('10.00'))
        self.assertEqual(cart.totals.total, Decimal('27.67'))
        self.assertEqual(tenants[self.lamp.id], 'Common Areas (All)')

    def test_build_cart_merges_repeated_products(self):
        cart, _ = build_cart(self.client_obj, [{'product': self.lamp.id, 'quantity': 2},
                                               {'product': self.lamp.id, 'quantity': 3}])
        self.assertEqual(len(cart), 1)
        self.assertEqual(cart.get(self.lamp.id).quantity, 5)

    def test_unassigned_product_rejected(self):
        stranger = TestDataFactory.create_product()
        with self.assertRaises(CartError):
            build_cart(self.client_obj, [{'product': stranger.id, 'quantity': 1}])

    def test_disabled_product_rejected(self):
        self.ballast.status = 'disabled'
        self.ballast.save()
        with self.assertRaises(CartError):
            build_cart(self.client_obj, self.lines())

    @override_settings(ORDER_TAX_RATE=Decimal('0.10'))
    def test_quote_uses_configured_tax_rate(self):
        result = quote(self.member_actor, self.client_obj, self.lines())
        self.assertEqual(result['subtotal'], Decimal('25.50'))
        self.assertEqual(result['tax_amount'], Decimal('2.55'))
        self.assertEqual(len(result['items']), 2)
        self.assertEqual(Order.objects.count(), 0)

    def test_submit_order(self):
        order = submit_order(
            self.member_actor, self.client_obj, self.lines(), user=self.member,
            building=self.building, purchase_order_number='PO 121212', contact_name='Molly',
        )
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.building_name, '50 Beale Street')
        self.assertEqual(order.submitted_by, self.member)
        self.assertEqual((order.subtotal, order.tax_amount, order.total),
                         (Decimal('25.50'), Decimal('2.17'), Decimal('27.67')))
        items = list(order.items.all())
        self.assertEqual([i.item_code for i in items], ['91496', 'B-232'])
        self.assertEqual(items[0].item_subtotal, Decimal('20.00'))
        self.assertEqual(items[0].tenant, 'Common Areas (All)')
        self.assertEqual(items[0].description, 'GE LED2T8/G/4/835')
        self.assertTrue(AuditLog.objects.filter(action='order_submit', object_reference=order.order_number).exists())

    def test_submitted_items_keep_their_snapshot(self):
        order = submit_order(self.member_actor, self.client_obj, self.lines())
        self.lamp.base_unit_price = Decimal('99.00')
        self.lamp.description = 'Changed'
        self.lamp.save()
        item = order.items.get(item_code='91496')
        self.assertEqual(item.unit_price, Decimal('10.00'))
        self.assertEqual(item.description, 'GE LED2T8/G/4/835')

    def test_empty_order_rejected(self):
        with self.assertRaises(CartError):
            submit_order(self.member_actor, self.client_obj, [])
        self.assertEqual(Order.objects.count(), 0)

    def test_client_cannot_submit_non_pending_order(self):
        with self.assertRaises(TransitionNotPermitted):
            submit_order(self.member_actor, self.client_obj, self.lines(), status=OrderStatus.COMPLETED)

    def test_owner_changes_status(self):
        order = submit_order(self.member_actor, self.client_obj, self.lines())
        change_status(order, OrderStatus.COMPLETED, self.owner_actor, user=self.owner)
        change_status(order, OrderStatus.PENDING, self.owner_actor, user=self.owner)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)
        log = AuditLog.objects.filter(action='order_status_change').order_by('id').first()
        self.assertEqual(log.changes, {'status': {'old': 'PENDING', 'new': 'COMPLETED'}})

    def test_client_cannot_change_status(self):
        order = submit_order(self.member_actor, self.client_obj, self.lines())
        with self.assertRaises(TransitionNotPermitted):
            change_status(order, OrderStatus.CANCELLED, self.member_actor)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_replace_items_recomputes_totals(self):
        order = submit_order(self.member_actor, self.client_obj, self.lines())
        replace_items(order, [
            {'item_code': '91496', 'description': 'LED', 'unit_price': Decimal('10.83'), 'units_ordered': 100},
        ], self.owner_actor, user=self.owner)
        order.refresh_from_db()
        self.assertEqual(order.items.count(), 1)
        self.assertEqual(order.items.get().item_subtotal, Decimal('1083.00'))
        self.assertEqual((order.subtotal, order.tax_amount, order.total),
                         (Decimal('1083.00'), Decimal('92.06'), Decimal('1175.06')))

    def test_client_cannot_replace_items(self):
        order = submit_order(self.member_actor, self.client_obj, self.lines())
        with self.assertRaises(ActionNotPermitted):
            replace_items(order, [], self.member_actor)

    def test_replace_items_rejects_negative_price(self):
        order = submit_order(self.member_actor, self.client_obj, self.lines())
        with self.assertRaises(PricingError):
            replace_items(order, [
                {'item_code': 'X', 'unit_price': Decimal('-1'), 'units_ordered': 1},
            ], self.owner_actor)


class DuplicateOrderTests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.actor = actor_for_user(self.owner)
        self.client_obj = TestDataFactory.create_client()
        self.source = TestDataFactory.create_order(
            self.client_obj,
            user=self.owner,
            order_number='PO 121212',
            status=OrderStatus.COMPLETED,
            items=[('91496', Decimal('10.83'), 100), ('B-232', Decimal('5.50'), 3)],
            contact_name='Molly',
            special_instructions='CALL SUZY WHEN THE PRODUCTS SHIP',
        )

    def test_duplicate_copies_items_and_resets_status(self):
        copy = duplicate_order(self.source, self.actor, user=self.owner)
        self.assertNotEqual(copy.pk, self.source.pk)
        self.assertEqual(copy.order_number, 'PO 121213')
        self.assertEqual(copy.status, OrderStatus.PENDING)
        self.assertEqual(copy.duplicated_from, self.source)
        self.assertEqual(copy.notes, 'Copy of PO 121212')
        self.assertEqual(copy.contact_name, 'Molly')
        self.assertEqual(copy.special_instructions, 'CALL SUZY WHEN THE PRODUCTS SHIP')
        self.assertEqual(
            [(i.item_code, i.unit_price, i.units_ordered) for i in copy.items.all()],
            [(i.item_code, i.unit_price, i.units_ordered) for i in self.source.items.all()],
        )
        self.assertEqual(copy.total, self.source.total)
        self.assertGreaterEqual(copy.created_at, self.source.created_at)

    def test_duplicate_keeps_prices_after_catalog_change(self):
        lamp = TestDataFactory.create_product(
            item_number='91496', description='GE LED2T8/G/4/835', base_unit_price=Decimal('10.00')
        )
        TestDataFactory.create_assignment(self.client_obj, lamp)
        source = submit_order(self.actor, self.client_obj, [{'product': lamp.id, 'quantity': 2}])

        lamp.base_unit_price = Decimal('50.00')
        lamp.description = 'Discontinued'
        lamp.save()

        copy = duplicate_order(source, self.actor)
        item = copy.items.get()
        self.assertEqual(item.product, lamp)
        self.assertEqual(item.unit_price, Decimal('10.00'))
        self.assertEqual(item.description, 'GE LED2T8/G/4/835')
        self.assertEqual(item.item_subtotal, Decimal('20.00'))
        self.assertEqual(copy.total, Decimal('21.70'))

    def test_source_is_untouched(self):
        duplicate_order(self.source, self.actor)
        self.source.refresh_from_db()
        self.assertEqual(self.source.status, OrderStatus.COMPLETED)
        self.assertEqual(self.source.items.count(), 2)

    def test_number_bumped_until_unique(self):
        TestDataFactory.create_order(self.client_obj, order_number='PO 121213')
        copy = duplicate_order(self.source, self.actor)
        self.assertEqual(copy.order_number, 'PO 121214')

    def test_number_without_digits_gets_suffix(self):
        source = TestDataFactory.create_order(self.client_obj, order_number='PO: 50B-0972-AR')
        copy = duplicate_order(source, self.actor)
        self.assertEqual(copy.order_number, 'PO: 50B-0972-AR-2')
        again = duplicate_order(source, self.actor)
        self.assertEqual(again.order_number, 'PO: 50B-0972-AR-3')

    def test_empty_order_duplicates_to_empty_order(self):
        source = TestDataFactory.create_order(self.client_obj, order_number='EMPTY 1')
        copy = duplicate_order(source, self.actor)
        self.assertEqual(copy.items.count(), 0)
        self.assertEqual(copy.total, Decimal('0.00'))

    def test_duplicate_is_audited(self):
        copy = duplicate_order(self.source, self.actor, user=self.owner)
        log = AuditLog.objects.get(action='order_duplicate')
        self.assertEqual(log.object_reference, copy.order_number)
        self.assertEqual(log.changes['duplicated_from'], 'PO 121212')


class OrderAPITests(TestCase):
    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client_obj = TestDataFactory.create_client()
        self.other_client = TestDataFactory.create_client()
        self.member = TestDataFactory.create_client_user(client=self.client_obj)
        self.lamp = TestDataFactory.create_product(item_number='91496', base_unit_price=Decimal('10.00'))
        self.ballast = TestDataFactory.create_product(item_number='B-232', base_unit_price=Decimal('5.50'))
        TestDataFactory.create_assignment(self.client_obj, self.lamp)
        TestDataFactory.create_assignment(self.client_obj, self.ballast)
        self.api = AuthenticatedAPIClient()

    def payload(self, **extra):
        data = {
            'purchase_order_number': 'PO 121212',
            'contact_name': 'Molly',
            'lines': [
                {'product': self.lamp.id, 'quantity': 2},
                {'product': self.ballast.id, 'quantity': 1},
            ],
        }
        data.update(extra)
        return data

    def test_requires_authentication(self):
        response = self.api.get(reverse('order-list-submit'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_member_submits_order(self):
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-list-submit'), self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['client'], self.client_obj.id)
        self.assertEqual(response.data['status'], 'PENDING')
        self.assertEqual(response.data['status_label'], 'In Arrears')
        self.assertEqual(response.data['subtotal'], '25.50')
        self.assertEqual(response.data['tax_amount'], '2.17')
        self.assertEqual(response.data['total'], '27.67')
        self.assertEqual(len(response.data['items']), 2)

    def test_member_cannot_order_for_other_client(self):
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-list-submit'), self.payload(client=self.other_client.id),
                                 format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_must_name_client(self):
        self.api.authenticate_user(self.owner)
        response = self.api.post(reverse('order-list-submit'), self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.api.post(reverse('order-list-submit'), self.payload(client=self.client_obj.id),
                                 format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_unassigned_product_is_bad_request(self):
        stranger = TestDataFactory.create_product()
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-list-submit'),
                                 self.payload(lines=[{'product': stranger.id, 'quantity': 1}]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('detail', response.data)

    def test_member_cannot_submit_completed_order(self):
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-list-submit'), self.payload(status='COMPLETED'), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_empty_lines_rejected(self):
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-list-submit'), self.payload(lines=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quote(self):
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-quote'), {'lines': self.payload()['lines']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '27.67')
        self.assertEqual(Order.objects.count(), 0)

    def test_list_is_scoped_to_client(self):
        TestDataFactory.create_order(self.client_obj, order_number='PO 1')
        TestDataFactory.create_order(self.other_client, order_number='PO 2')
        self.api.authenticate_user(self.member)
        response = self.api.get(reverse('order-list-submit'))
        self.assertEqual([o['order_number'] for o in response.data], ['PO 1'])

        self.api.authenticate_user(self.owner)
        response = self.api.get(reverse('order-list-submit'))
        self.assertEqual(len(response.data), 2)
        response = self.api.get(reverse('order-list-submit'), {'client': self.other_client.id})
        self.assertEqual([o['order_number'] for o in response.data], ['PO 2'])

    def test_list_rejects_non_numeric_client_filter(self):
        self.api.authenticate_user(self.owner)
        response = self.api.get(reverse('order-list-submit'), {'client': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('client', response.data)

    def test_list_filters(self):
        TestDataFactory.create_order(self.client_obj, order_number='PO 1', status='COMPLETED')
        TestDataFactory.create_order(self.client_obj, order_number='PO 2', building_name='50 Beale Street')
        self.api.authenticate_user(self.owner)
        by_status = self.api.get(reverse('order-list-submit'), {'status': 'completed'})
        self.assertEqual([o['order_number'] for o in by_status.data], ['PO 1'])
        by_search = self.api.get(reverse('order-list-submit'), {'search': 'beale'})
        self.assertEqual([o['order_number'] for o in by_search.data], ['PO 2'])

    def test_other_clients_order_is_not_found(self):
        order = TestDataFactory.create_order(self.other_client)
        self.api.authenticate_user(self.member)
        response = self.api.get(reverse('order-detail', args=[order.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_change_owner_only(self):
        order = TestDataFactory.create_order(self.client_obj, items=[('91496', Decimal('10.00'), 1)])
        url = reverse('order-status', args=[order.id])

        self.api.authenticate_user(self.member)
        response = self.api.post(url, {'status': 'PROCESSING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.api.authenticate_user(self.owner)
        response = self.api.post(url, {'status': 'PROCESSING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status_label'], 'In Process')
        self.assertEqual(response.data['status_color'], 'blue')

        response = self.api.post(url, {'status': 'SHIPPED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_replace_items_endpoint(self):
        order = TestDataFactory.create_order(self.client_obj, items=[('91496', Decimal('10.00'), 1)])
        url = reverse('order-items', args=[order.id])
        payload = {'items': [
            {'item_code': '91496', 'unit_price': '10.83', 'units_ordered': 100, 'tenant': 'Common Areas (All)'},
        ]}

        self.api.authenticate_user(self.member)
        self.assertEqual(self.api.put(url, payload, format='json').status_code, status.HTTP_403_FORBIDDEN)

        self.api.authenticate_user(self.owner)
        response = self.api.put(url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '1175.06')
        self.assertEqual(response.data['items'][0]['item_subtotal'], '1083.00')

    def test_duplicate_endpoint(self):
        order = TestDataFactory.create_order(self.client_obj, order_number='PO 121212',
                                             items=[('91496', Decimal('10.00'), 2)])
        self.api.authenticate_user(self.member)
        response = self.api.post(reverse('order-duplicate', args=[order.id]))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_number'], 'PO 121213')
        self.assertEqual(response.data['duplicated_from_number'], 'PO 121212')
        self.assertEqual(response.data['status'], 'PENDING')

    def test_owner_edits_header_fields(self):
        order = TestDataFactory.create_order(self.client_obj)
        self.api.authenticate_user(self.owner)
        response = self.api.patch(reverse('order-detail', args=[order.id]), {'comments': 'Ship ground'},
                                  format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['comments'], 'Ship ground')

        self.api.authenticate_user(self.member)
        response = self.api.patch(reverse('order-detail', args=[order.id]), {'comments': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_statuses_endpoint(self):
        self.api.authenticate_user(self.member)
        response = self.api.get(reverse('order-statuses'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        labels = {s['value']: s['label'] for s in response.data}
        self.assertEqual(labels, {
            'PENDING': 'In Arrears', 'PROCESSING': 'In Process', 'COMPLETED': 'Invoiced', 'CANCELLED': 'Cancelled',
        })

    def test_summary_endpoint(self):
        TestDataFactory.create_order(self.client_obj, items=[('91496', Decimal('10.00'), 2)])
        TestDataFactory.create_order(self.client_obj, status='COMPLETED', items=[('91496', Decimal('10.00'), 1)])
        TestDataFactory.create_order(self.other_client)
        self.api.authenticate_user(self.member)
        response = self.api.get(reverse('order-summary'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 2)
        by_status = {s['status']: s for s in response.data['by_status']}
        self.assertEqual(by_status['PENDING']['count'], 1)
        self.assertEqual(by_status['PENDING']['total'], '21.70')
        self.assertEqual(by_status['CANCELLED']['count'], 0)


class ActorContextTests(SimpleTestCase):
    def test_actor_is_explicit_value(self):
        actor = Actor(id=1, role=ROLE_OWNER)
        with self.assertRaises(Exception):
            actor.role = ROLE_CLIENT
