"""
Order submission, status changes, item edits and duplication.

Views resolve the caller into an Actor and pass it in; nothing here reads a
current user on its own. Money always comes from orders.pricing.
"""
import logging
import re
import uuid

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from portal.catalog.models import ClientProductAssignment, Product
from portal.core.utils import create_audit_log
from .cart import Cart
from .exceptions import ActionNotPermitted, CartError
from .models import Order, OrderItem
from .pricing import calculate_totals, line_subtotal, to_money, to_quantity
from .status import INITIAL_STATUS, check_initial_status, check_transition

logger = logging.getLogger(__name__)

TRAILING_DIGITS = re.compile(r'(\d+)$')

ORDER_FIELDS = (
    'purchase_order_number', 'building', 'building_name', 'contact_name', 'contact_email', 'phone',
    'shipping_type', 'billing', 'address1', 'address2', 'city', 'state', 'zip',
    'special_instructions', 'comments', 'notes',
)


def default_tax_rate():
    return settings.ORDER_TAX_RATE


def generate_order_number():
    """ORD-YYYYMMDD-XXXXXXXX, unique among stored orders"""
    def candidate():
        return f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"

    order_number = candidate()
    while Order.objects.filter(order_number=order_number).exists():
        order_number = candidate()
    return order_number


def next_order_number(order_number):
    """
    Successor of an order number: its trailing digits incremented
    ("PO 121212" -> "PO 121213"), or "-2" appended when it has none.
    """
    match = TRAILING_DIGITS.search(order_number)
    if match:
        return order_number[:match.start()] + str(int(match.group(1)) + 1)
    return f"{order_number}-2"


def unique_successor_number(order_number):
    candidate = next_order_number(order_number)
    while Order.objects.filter(order_number=candidate).exists():
        candidate = next_order_number(candidate)
    return candidate


def _line_value(line, name, default=None):
    if isinstance(line, dict):
        return line.get(name, default)
    return getattr(line, name, default)


def build_cart(client, lines, tax_rate=None):
    """
    Price submitted lines against the client's catalog.

    Each line names a product (id) and a quantity (at least 1). Products must
    be assigned to the client and available; the unit price is the client's
    price when one is set, else the product's base price. Repeated products
    are merged into one cart line.

    Returns tuple: (cart, tenants) where tenants maps product id to the
    location tag of its first line.
    """
    cart = Cart(tax_rate=default_tax_rate() if tax_rate is None else tax_rate)
    tenants = {}
    lines = list(lines or [])
    product_ids = [_line_value(line, 'product') for line in lines]
    assignments = {
        a.product_id: a
        for a in ClientProductAssignment.objects.filter(
            client=client, product_id__in=[pid for pid in product_ids if pid is not None]
        ).select_related('product')
    }

    for index, line in enumerate(lines):
        product_id = product_ids[index]
        quantity = to_quantity(_line_value(line, 'quantity', 1))
        if quantity < 1:
            raise CartError(f'Line {index + 1}: quantity must be at least 1.')
        assignment = assignments.get(product_id)
        if assignment is None:
            raise CartError(f'Line {index + 1}: product {product_id} is not in this client\'s catalog.')
        product = assignment.product
        if product.status != Product.STATUS_AVAILABLE:
            raise CartError(f'Line {index + 1}: product {product.item_number} is not available.')

        existing = cart.get(product.id)
        if existing is None:
            cart.add(product, price_override=assignment.client_unit_price)
            cart.set_quantity(product.id, quantity)
            tenants[product.id] = _line_value(line, 'tenant', '') or ''
        else:
            cart.set_quantity(product.id, existing.quantity + quantity)
    return cart, tenants


def quote(actor, client, lines, tax_rate=None):
    """Totals for a would-be order; nothing is stored"""
    cart, tenants = build_cart(client, lines, tax_rate)
    return {
        'client': client.id,
        'items': [
            {
                'product': item.product_id,
                'item_code': item.item_code,
                'description': item.description,
                'tenant': tenants.get(item.product_id, ''),
                'unit_price': item.unit_price,
                'quantity': item.quantity,
                'item_subtotal': item.total_price,
            }
            for item in cart
        ],
        'tax_rate': cart.tax_rate,
        **cart.totals.as_dict(),
    }


@transaction.atomic
def submit_order(actor, client, lines, request=None, user=None, status=None, **order_fields):
    """
    Create an order and its items from submitted lines.

    Client users can only create PENDING orders. Empty carts are refused.
    """
    status = status or INITIAL_STATUS
    check_initial_status(status, actor.role)

    cart, tenants = build_cart(client, lines)
    if cart.is_empty:
        raise CartError('Cannot submit an empty order.')

    fields = {name: value for name, value in order_fields.items() if name in ORDER_FIELDS and value is not None}
    building = fields.get('building')
    if building is not None and not fields.get('building_name'):
        fields['building_name'] = building.name

    totals = cart.summary()
    order = Order.objects.create(
        order_number=generate_order_number(),
        client=client,
        submitted_by_id=actor.id,
        status=status,
        tax_rate=cart.tax_rate,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total=totals.total,
        **fields,
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product_id=item.product_id,
            tenant=tenants.get(item.product_id, ''),
            item_code=item.item_code,
            description=item.description,
            unit_price=item.unit_price,
            units_ordered=item.quantity,
            item_subtotal=item.total_price,
            position=position,
        )
        for position, item in enumerate(cart)
    ])

    logger.info(f"Order {order.order_number} submitted for client {client.id} ({len(cart)} items, total {order.total})")
    create_audit_log(
        request=request,
        user=user,
        action='order_submit',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={
            'client': client.id,
            'items': len(cart),
            'subtotal': str(order.subtotal),
            'tax_amount': str(order.tax_amount),
            'total': str(order.total),
        },
    )
    return order


def change_status(order, target, actor, request=None, user=None):
    """Move an order to another status (owners only)"""
    old_status = order.status
    check_transition(old_status, target, actor.role)
    if old_status == target:
        return order

    order.status = target
    order.save(update_fields=['status', 'updated_at'])
    logger.info(f"Order {order.order_number} status changed: {old_status} -> {target}")
    create_audit_log(
        request=request,
        user=user,
        action='order_status_change',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'status': {'old': old_status, 'new': target}},
    )
    return order


def _priced_items(items):
    """Validate edited item dicts and compute their subtotals"""
    priced = []
    for index, item in enumerate(items):
        item_code = (_line_value(item, 'item_code') or '').strip()
        if not item_code:
            raise CartError(f'Line {index + 1}: item code is required.')
        unit_price = to_money(_line_value(item, 'unit_price'))
        product = _line_value(item, 'product')
        quantity = to_quantity(_line_value(item, 'units_ordered', _line_value(item, 'quantity', 1)), 'units_ordered')
        priced.append({
            'product_id': getattr(product, 'pk', product),
            'tenant': _line_value(item, 'tenant', '') or '',
            'item_code': item_code,
            'description': _line_value(item, 'description', '') or '',
            'unit_price': unit_price,
            'units_ordered': quantity,
            'item_subtotal': line_subtotal(unit_price, quantity),
        })
    return priced


def _apply_totals(order):
    totals = calculate_totals(
        [(item.unit_price, item.units_ordered) for item in order.items.all()], order.tax_rate
    )
    order.subtotal = totals.subtotal
    order.tax_amount = totals.tax_amount
    order.total = totals.total
    order.save(update_fields=['subtotal', 'tax_amount', 'total', 'updated_at'])
    return totals


@transaction.atomic
def replace_items(order, items, actor, request=None, user=None):
    """
    Replace every item of an order (owner edit) and recompute its totals.

    Item prices are taken as given; every subtotal is recomputed.
    """
    if not actor.is_owner:
        raise ActionNotPermitted('Only owners can edit order items.')
    priced = _priced_items(items)
    old_total = order.total

    order.items.all().delete()
    OrderItem.objects.bulk_create([
        OrderItem(order=order, position=position, **item) for position, item in enumerate(priced)
    ])
    _apply_totals(order)

    logger.info(f"Order {order.order_number} items replaced ({len(priced)} items, total {order.total})")
    create_audit_log(
        request=request,
        user=user,
        action='order_items_update',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'items': len(priced), 'total': {'old': str(old_total), 'new': str(order.total)}},
    )
    return order


@transaction.atomic
def duplicate_order(source, actor, request=None, user=None):
    """
    Copy an order into a new PENDING order.

    Items are copied as stored (snapshots are not re-read from the catalog)
    and the totals are recomputed from the copies. The new order number is
    the next free successor of the source number.
    """
    order_number = unique_successor_number(source.order_number)
    copied_fields = {name: getattr(source, name) for name in ORDER_FIELDS if name != 'notes'}
    copied_fields['purchase_order_number'] = order_number

    order = Order.objects.create(
        order_number=order_number,
        client=source.client,
        submitted_by_id=actor.id,
        status=INITIAL_STATUS,
        tax_rate=source.tax_rate,
        duplicated_from=source,
        notes=f"Copy of {source.order_number}",
        **copied_fields,
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product_id=item.product_id,
            tenant=item.tenant,
            item_code=item.item_code,
            description=item.description,
            unit_price=item.unit_price,
            units_ordered=item.units_ordered,
            item_subtotal=line_subtotal(item.unit_price, item.units_ordered),
            position=item.position,
        )
        for item in source.items.all()
    ])
    _apply_totals(order)

    logger.info(f"Order {source.order_number} duplicated as {order.order_number}")
    create_audit_log(
        request=request,
        user=user,
        action='order_duplicate',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'duplicated_from': source.order_number, 'items': order.items.count()},
    )
    return order
