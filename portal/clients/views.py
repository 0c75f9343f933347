from django.shortcuts import get_object_or_404
from django.http import Http404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.core.context import actor_from_request
from portal.core.permissions import IsOwner, IsOwnerOrClientMember
from .models import Client, Building
from .serializers import ClientSerializer, BuildingSerializer
from .services import clients_with_counts, client_portal_summary


def get_client_for_actor(request, pk):
    """Fetch a client the caller may see; other clients look like missing ones"""
    client = get_object_or_404(Client, pk=pk)
    actor = actor_from_request(request)
    if actor is None or not actor.can_access_client(client.id):
        raise Http404('Client not found')
    return client


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOwner])
def client_list_create(request):
    """List all clients with counts or create a new client"""
    if request.method == 'GET':
        clients = clients_with_counts()
        search = request.query_params.get('search')
        if search:
            clients = clients.filter(name__icontains=search)
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            clients = clients.filter(is_active=is_active.lower() == 'true')
        serializer = ClientSerializer(clients, many=True)
        return Response(serializer.data)
    else:  # POST
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def client_detail(request, pk):
    """Retrieve a client (owner or member); update or delete (owner only)"""
    get_client_for_actor(request, pk)
    client = clients_with_counts().get(pk=pk)

    if request.method == 'GET':
        return Response(ClientSerializer(client).data)

    if not IsOwner().has_permission(request, None):
        return Response({'error': 'Owner access required.'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if client.orders_count:
            return Response(
                {'error': 'Client has orders', 'detail': 'Deactivate the client instead of deleting it.'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        client.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def client_buildings(request, pk):
    """List a client's buildings or add one (owner only)"""
    client = get_client_for_actor(request, pk)

    if request.method == 'GET':
        serializer = BuildingSerializer(client.buildings.all(), many=True)
        return Response(serializer.data)

    if not IsOwner().has_permission(request, None):
        return Response({'error': 'Owner access required.'}, status=status.HTTP_403_FORBIDDEN)
    serializer = BuildingSerializer(data=request.data)
    if serializer.is_valid():
        if Building.objects.filter(client=client, name=serializer.validated_data['name']).exists():
            return Response({'name': ['Building already exists for this client']}, status=status.HTTP_400_BAD_REQUEST)
        serializer.save(client=client)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwnerOrClientMember])
def client_summary(request, pk):
    """Client portal landing data: product/order counts, recent orders, categories"""
    client = get_client_for_actor(request, pk)
    return Response(client_portal_summary(client))
