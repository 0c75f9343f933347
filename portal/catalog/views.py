from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.clients.views import get_client_for_actor
from portal.core.permissions import IsOwner, IsOwnerOrClientMember
from portal.core.utils import create_audit_log
from .cache import get_cached_client_catalog, cache_client_catalog
from .filters import ProductFilter
from .models import Category, Subcategory, Product, ClientProductAssignment
from .serializers import (
    CategorySerializer, SubcategorySerializer, ProductSerializer,
    ClientProductSerializer, ClientProductAssignmentSerializer, BulkAssignSerializer,
)
from .services import (
    get_client_products, product_categories, assign_product, update_assignment,
    remove_assignment, bulk_assign,
)

CATALOG_FILTER_PARAMS = ('search', 'category', 'subcategory', 'manufacturer', 'min_price', 'max_price')
OVERRIDE_FIELDS = ('client_unit_price', 'client_case_price', 'client_units_per_case')


def owner_required(request):
    if not IsOwner().has_permission(request, None):
        return Response({'error': 'Owner access required.'}, status=status.HTTP_403_FORBIDDEN)
    return None


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List categories with their subcategories, or create one (owner only)"""
    if request.method == 'GET':
        categories = Category.objects.prefetch_related('subcategories')
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            categories = categories.filter(is_active=is_active.lower() == 'true')
        serializer = CategorySerializer(categories, many=True)
        return Response(serializer.data)

    denied = owner_required(request)
    if denied:
        return denied
    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)

    denied = owner_required(request)
    if denied:
        return denied
    if request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def subcategory_list_create(request):
    """List subcategories (optionally of one category) or create one (owner only)"""
    if request.method == 'GET':
        subcategories = Subcategory.objects.select_related('category')
        category_id = request.query_params.get('category')
        if category_id:
            subcategories = subcategories.filter(category_id=category_id)
        serializer = SubcategorySerializer(subcategories, many=True)
        return Response(serializer.data)

    denied = owner_required(request)
    if denied:
        return denied
    serializer = SubcategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOwner])
def product_list_create(request):
    """List the master catalog (owner) with filters, or create a product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category', 'subcategory').annotate(
            assignments_count=Count('assignments')
        )
        queryset = ProductFilter(request.query_params, queryset=queryset).qs.order_by('name')
        serializer = ProductSerializer(queryset, many=True)
        return Response(serializer.data)
    else:  # POST
        serializer = ProductSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.save()
            create_audit_log(
                request=request,
                action='create',
                model_name='Product',
                object_id=product.id,
                object_reference=product.item_number,
                changes={'name': product.name, 'base_unit_price': str(product.base_unit_price)},
            )
            return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsOwner])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        old_data = {
            'name': product.name,
            'base_unit_price': str(product.base_unit_price),
            'status': product.status,
        }
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            new_data = {
                'name': product.name,
                'base_unit_price': str(product.base_unit_price),
                'status': product.status,
            }
            changes = {k: {'old': old_data[k], 'new': new_data[k]} for k in old_data if old_data[k] != new_data[k]}
            if changes:
                create_audit_log(
                    request=request,
                    action='update',
                    model_name='Product',
                    object_id=product.id,
                    object_reference=product.item_number,
                    changes=changes,
                )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_id = product.id
        item_number = product.item_number
        product.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=product_id,
            object_reference=item_number,
            changes={'item_number': item_number},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_category_names(request):
    """Names of categories that currently hold products"""
    return Response(product_categories())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwner])
def product_assignments(request, pk):
    """Every client a product is assigned to, with its price overrides"""
    product = get_object_or_404(Product, pk=pk)
    assignments = product.assignments.select_related('client', 'product', 'assigned_by').order_by('client__name')
    serializer = ClientProductAssignmentSerializer(assignments, many=True)
    return Response(serializer.data)


# Client catalog views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def client_products(request, pk):
    """
    GET: the client's catalog (assigned, available products at client prices).
    Filters: search, category, subcategory, manufacturer, min_price, max_price.

    POST (owner only): assign a product, optionally with price overrides.
    """
    client = get_client_for_actor(request, pk)

    if request.method == 'GET':
        filters_dict = {
            name: request.query_params.get(name)
            for name in CATALOG_FILTER_PARAMS
            if request.query_params.get(name)
        }
        cached_data, cache_key = get_cached_client_catalog(client.id, filters_dict)
        if cached_data is not None:
            return Response(cached_data)

        products = get_client_products(client.id, filters_dict)
        data = ClientProductSerializer(products, many=True).data
        cache_client_catalog(cache_key, data)
        return Response(data)

    denied = owner_required(request)
    if denied:
        return denied
    try:
        product_id = int(request.data.get('product'))
    except (TypeError, ValueError):
        return Response({'product': ['A valid product id is required.']}, status=status.HTTP_400_BAD_REQUEST)
    product = get_object_or_404(Product, pk=product_id)
    serializer = ClientProductAssignmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    overrides = {name: serializer.validated_data.get(name) for name in OVERRIDE_FIELDS}
    assignment, created = assign_product(client, product, user=request.user, request=request, **overrides)
    return Response(
        ClientProductAssignmentSerializer(assignment).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsOwner])
def client_product_detail(request, pk, product_pk):
    """Change a client's price overrides for a product, or unassign it"""
    client = get_client_for_actor(request, pk)
    product = get_object_or_404(Product, pk=product_pk)

    if request.method == 'PATCH':
        assignment = get_object_or_404(ClientProductAssignment, client=client, product=product)
        serializer = ClientProductAssignmentSerializer(assignment, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        prices = {name: serializer.validated_data[name] for name in OVERRIDE_FIELDS if name in serializer.validated_data}
        update_assignment(assignment, user=request.user, request=request, **prices)
        return Response(ClientProductAssignmentSerializer(assignment).data)
    else:  # DELETE
        if not remove_assignment(client, product, user=request.user, request=request):
            return Response({'error': 'Product is not assigned to this client'}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def client_products_bulk_assign(request, pk):
    """Assign several products at once; already assigned ones are skipped"""
    client = get_client_for_actor(request, pk)
    serializer = BulkAssignSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product_ids = serializer.validated_data['product_ids']
    created = bulk_assign(client, product_ids, user=request.user, request=request)
    return Response(
        {
            'assigned': len(created),
            'skipped': len(set(product_ids)) - len(created),
            'assignments': ClientProductAssignmentSerializer(created, many=True).data,
        },
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )
