"""
Client portal aggregates.

Each part of the summary is loaded independently: a data-store failure in one
part is logged and reported as an empty value instead of failing the page.
"""
import logging

from django.db import DatabaseError
from django.db.models import Count, Max

from .models import Client

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 5


def clients_with_counts():
    """Clients annotated with order/product counts and their last order date"""
    return Client.objects.prefetch_related('buildings').annotate(
        orders_count=Count('orders', distinct=True),
        products_count=Count('product_assignments', distinct=True),
        last_order_date=Max('orders__created_at'),
    )


def _load(part, loader, fallback):
    try:
        return loader()
    except DatabaseError as e:
        logger.error(f"Failed to load portal {part}: {str(e)}")
        return fallback


def client_portal_summary(client):
    """Dashboard data for a client's landing page"""
    from portal.catalog.models import ClientProductAssignment
    from portal.orders.models import Order
    from portal.orders.status import status_label

    def recent_orders():
        orders = (
            Order.objects.filter(client=client)
            .annotate(items_count=Count('items'))
            .order_by('-created_at')[:RECENT_ORDERS_LIMIT]
        )
        return [
            {
                'id': order.id,
                'order_number': order.order_number,
                'status': order.status,
                'status_label': status_label(order.status),
                'total': str(order.total),
                'items_count': order.items_count,
                'created_at': order.created_at.isoformat(),
            }
            for order in orders
        ]

    def product_categories():
        names = (
            ClientProductAssignment.objects.filter(client=client, product__category__isnull=False)
            .values_list('product__category__name', flat=True)
            .distinct()
        )
        return sorted(set(names))

    return {
        'client': {'id': client.id, 'name': client.name},
        'total_products': _load(
            'product count',
            lambda: ClientProductAssignment.objects.filter(client=client).count(),
            0,
        ),
        'total_orders': _load('order count', lambda: Order.objects.filter(client=client).count(), 0),
        'recent_orders': _load('recent orders', recent_orders, []),
        'product_categories': _load('product categories', product_categories, []),
    }
