"""
Client catalog queries and product assignment management.
"""
import logging

from django.db import transaction

from portal.core.utils import create_audit_log
from portal.orders.pricing import resolve_unit_price
from .filters import ProductFilter
from .models import Product, ClientProductAssignment, Category

logger = logging.getLogger(__name__)


def effective_case_price(product, assignment):
    if assignment is not None and assignment.client_case_price is not None:
        return assignment.client_case_price
    return product.case_price


def effective_units_per_case(product, assignment):
    if assignment is not None and assignment.client_units_per_case:
        return assignment.client_units_per_case
    return product.units_per_case


def get_client_products(client_id, filters=None):
    """
    Products assigned to a client, available only, with client pricing.

    Each returned Product carries its assignment as `assignment` and the
    resolved prices as `client_price`, `client_case_price` and
    `client_units_per_case`.
    """
    assignments = {
        a.product_id: a
        for a in ClientProductAssignment.objects.filter(client_id=client_id)
    }
    if not assignments:
        return []

    queryset = Product.objects.filter(
        id__in=list(assignments), status=Product.STATUS_AVAILABLE
    ).select_related('category', 'subcategory')
    queryset = ProductFilter(filters or {}, queryset=queryset).qs.order_by('name')

    products = []
    for product in queryset:
        assignment = assignments[product.id]
        product.assignment = assignment
        product.client_price = resolve_unit_price(product.base_unit_price, assignment.client_unit_price)
        product.client_case_price = effective_case_price(product, assignment)
        product.client_units_per_case = effective_units_per_case(product, assignment)
        products.append(product)
    return products


def product_categories():
    """Names of active categories that have at least one product"""
    return list(
        Category.objects.filter(is_active=True, products__isnull=False)
        .order_by('sort_order', 'name')
        .values_list('name', flat=True)
        .distinct()
    )


def assign_product(client, product, user=None, request=None, client_unit_price=None,
                   client_case_price=None, client_units_per_case=None):
    """
    Assign a product to a client. Assigning twice is a no-op that returns the
    existing assignment.

    Returns tuple: (assignment, created)
    """
    assignment, created = ClientProductAssignment.objects.get_or_create(
        client=client,
        product=product,
        defaults={
            'client_unit_price': client_unit_price,
            'client_case_price': client_case_price,
            'client_units_per_case': client_units_per_case,
            'assigned_by': user,
        },
    )
    if created:
        logger.info(f"Assigned product {product.item_number} to client {client.id}")
        create_audit_log(
            request=request,
            user=user,
            action='assignment_add',
            model_name='ClientProductAssignment',
            object_id=assignment.id,
            object_reference=product.item_number,
            changes={
                'client': client.id,
                'client_unit_price': str(client_unit_price) if client_unit_price is not None else None,
            },
        )
    return assignment, created


def update_assignment(assignment, user=None, request=None, **prices):
    """Change the client-specific price overrides of an assignment"""
    before = {name: getattr(assignment, name) for name in prices}
    for name, value in prices.items():
        setattr(assignment, name, value)
    assignment.save()
    create_audit_log(
        request=request,
        user=user,
        action='assignment_update',
        model_name='ClientProductAssignment',
        object_id=assignment.id,
        object_reference=assignment.product.item_number,
        changes={
            name: {'old': str(before[name]) if before[name] is not None else None,
                   'new': str(value) if value is not None else None}
            for name, value in prices.items()
        },
    )
    return assignment


def remove_assignment(client, product, user=None, request=None):
    """Unassign a product; returns False when it was not assigned"""
    deleted, _ = ClientProductAssignment.objects.filter(client=client, product=product).delete()
    if not deleted:
        return False
    logger.info(f"Removed product {product.item_number} from client {client.id}")
    create_audit_log(
        request=request,
        user=user,
        action='assignment_remove',
        model_name='ClientProductAssignment',
        object_id=f"{client.id}:{product.id}",
        object_reference=product.item_number,
        changes={'client': client.id},
    )
    return True


@transaction.atomic
def bulk_assign(client, product_ids, user=None, request=None):
    """
    Assign many products at once, skipping ones already assigned.

    Returns the list of newly created assignments.
    """
    existing = set(
        ClientProductAssignment.objects.filter(client=client, product_id__in=product_ids)
        .values_list('product_id', flat=True)
    )
    products = Product.objects.filter(id__in=product_ids).exclude(id__in=existing)
    created = [
        ClientProductAssignment.objects.create(client=client, product=product, assigned_by=user)
        for product in products
    ]
    if created:
        logger.info(f"Bulk assigned {len(created)} products to client {client.id}")
        create_audit_log(
            request=request,
            user=user,
            action='assignment_add',
            model_name='ClientProductAssignment',
            object_id=client.id,
            object_reference=client.name,
            changes={'product_ids': [a.product_id for a in created]},
        )
    return created
