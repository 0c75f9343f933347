import logging
from datetime import datetime

from django.db.models import Count, Q, Sum
from django.http import Http404
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.clients.models import Client
from portal.core.context import actor_from_request
from portal.core.permissions import IsOwner, IsOwnerOrClientMember
from portal.core.utils import create_audit_log
from .exceptions import ActionNotPermitted, OrderingError
from .models import Order
from .serializers import (
    OrderSerializer, OrderListSerializer, OrderSubmitSerializer, OrderUpdateSerializer,
    QuoteSerializer, StatusChangeSerializer, OrderItemsReplaceSerializer,
)
from .pricing import ZERO, quantize_money
from .services import submit_order, quote, change_status, replace_items, duplicate_order
from .status import OrderStatus, ALLOWED_TRANSITIONS, status_badge

logger = logging.getLogger(__name__)


def ordering_error_response(error):
    """Map ordering core errors to HTTP responses"""
    if isinstance(error, ActionNotPermitted):
        return Response({'error': 'Not permitted', 'detail': str(error)}, status=status.HTTP_403_FORBIDDEN)
    return Response({'error': 'Invalid order', 'detail': str(error)}, status=status.HTTP_400_BAD_REQUEST)


def orders_for_actor(actor):
    orders = Order.objects.select_related('client', 'submitted_by')
    if not actor.is_owner:
        orders = orders.filter(client_id=actor.client_id)
    return orders


def get_order_for_actor(request, pk):
    """Fetch an order the caller may see; other clients' orders look missing"""
    actor = actor_from_request(request)
    order = get_object_or_404(
        Order.objects.select_related('client', 'submitted_by', 'duplicated_from').prefetch_related('items'),
        pk=pk,
    )
    if not actor.can_access_client(order.client_id):
        raise Http404('Order not found')
    return order


def resolve_order_client(actor, data):
    """
    Client an order is placed for: client users always order for their own
    client, owners must name one.
    """
    client = data.get('client')
    if actor.is_owner:
        return client
    if client is not None and client.id != actor.client_id:
        raise Http404('Client not found')
    return get_object_or_404(Client, pk=actor.client_id)


def _parse_date(value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def order_list_submit(request):
    """
    GET: orders visible to the caller, newest first.
    Filters: client, status, search (order/PO number, building), date_from, date_to.

    POST: submit an order from product lines; prices come from the client's catalog.
    """
    actor = actor_from_request(request)

    if request.method == 'GET':
        orders = orders_for_actor(actor).annotate(items_count=Count('items'))

        client_id = request.query_params.get('client')
        if client_id and actor.is_owner:
            try:
                orders = orders.filter(client_id=int(client_id))
            except (TypeError, ValueError):
                return Response({'client': ['A valid client id is required.']}, status=status.HTTP_400_BAD_REQUEST)
        status_filter = request.query_params.get('status')
        if status_filter:
            orders = orders.filter(status=status_filter.upper())
        search = request.query_params.get('search')
        if search:
            orders = orders.filter(
                Q(order_number__icontains=search) |
                Q(purchase_order_number__icontains=search) |
                Q(building_name__icontains=search)
            )
        date_from = _parse_date(request.query_params.get('date_from'))
        if date_from:
            orders = orders.filter(created_at__date__gte=date_from)
        date_to = _parse_date(request.query_params.get('date_to'))
        if date_to:
            orders = orders.filter(created_at__date__lte=date_to)

        serializer = OrderListSerializer(orders.order_by('-created_at'), many=True)
        return Response(serializer.data)

    serializer = OrderSubmitSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    client = resolve_order_client(actor, data)
    if client is None:
        return Response({'client': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
    building = data.get('building')
    if building is not None and building.client_id != client.id:
        return Response({'building': ['Building does not belong to this client']}, status=status.HTTP_400_BAD_REQUEST)

    lines = data.pop('lines')
    data.pop('client', None)
    try:
        order = submit_order(actor, client, lines, request=request, **data)
    except OrderingError as e:
        return ordering_error_response(e)
    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def order_quote(request):
    """Price a cart without placing the order"""
    actor = actor_from_request(request)
    serializer = QuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    client = resolve_order_client(actor, serializer.validated_data)
    if client is None:
        return Response({'client': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
    try:
        result = quote(actor, client, serializer.validated_data['lines'])
    except OrderingError as e:
        return ordering_error_response(e)

    for key in ('subtotal', 'tax_amount', 'total'):
        result[key] = str(result[key])
    result['tax_rate'] = str(result['tax_rate'])
    for item in result['items']:
        item['unit_price'] = str(item['unit_price'])
        item['item_subtotal'] = str(item['item_subtotal'])
    return Response(result)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def order_detail(request, pk):
    """Retrieve an order; owners may edit its header fields or delete it"""
    order = get_order_for_actor(request, pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    if not IsOwner().has_permission(request, None):
        return Response({'error': 'Owner access required.'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PATCH':
        serializer = OrderUpdateSerializer(order, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Order',
                object_id=order.id,
                object_reference=order.order_number,
                changes={name: str(value) for name, value in serializer.validated_data.items()},
            )
            return Response(OrderSerializer(get_order_for_actor(request, pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        order_id = order.id
        order_number = order.order_number
        order.delete()
        logger.info(f"Order {order_number} deleted")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Order',
            object_id=order_id,
            object_reference=order_number,
            changes={'order_number': order_number},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def order_status(request, pk):
    """Change an order's status (owners only)"""
    order = get_order_for_actor(request, pk)
    serializer = StatusChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        change_status(order, serializer.validated_data['status'], actor_from_request(request), request=request)
    except OrderingError as e:
        return ordering_error_response(e)
    return Response(OrderSerializer(order).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsOwner])
def order_items(request, pk):
    """Replace all items of an order; subtotals and totals are recomputed"""
    order = get_order_for_actor(request, pk)
    serializer = OrderItemsReplaceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        replace_items(order, serializer.validated_data['items'], actor_from_request(request), request=request)
    except OrderingError as e:
        return ordering_error_response(e)
    return Response(OrderSerializer(get_order_for_actor(request, pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def order_duplicate(request, pk):
    """Copy an order into a new pending order with the next order number"""
    source = get_order_for_actor(request, pk)
    order = duplicate_order(source, actor_from_request(request), request=request)
    return Response(OrderSerializer(get_order_for_actor(request, order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_statuses(request):
    """Status codes with display labels, badge colors and allowed next statuses"""
    data = []
    for code in OrderStatus.values:
        label, color = status_badge(code)
        data.append({
            'value': code,
            'label': label,
            'color': color,
            'transitions': sorted(ALLOWED_TRANSITIONS[code]),
        })
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def order_summary(request):
    """Order counts and totals per status for the orders the caller can see"""
    actor = actor_from_request(request)
    rows = {
        row['status']: row
        for row in orders_for_actor(actor).values('status').annotate(count=Count('id'), amount=Sum('total'))
    }
    by_status = []
    for code in OrderStatus.values:
        label, color = status_badge(code)
        row = rows.get(code, {})
        by_status.append({
            'status': code,
            'label': label,
            'color': color,
            'count': row.get('count', 0),
            'total': str(quantize_money(row.get('amount') or ZERO)),
        })
    return Response({
        'total_orders': sum(entry['count'] for entry in by_status),
        'by_status': by_status,
    })
