from rest_framework.permissions import BasePermission

from .context import actor_from_request


class IsOwner(BasePermission):
    """Allows access only to the distributor's owner/admin users"""
    message = 'Owner access required.'

    def has_permission(self, request, view):
        actor = actor_from_request(request)
        return actor is not None and actor.is_owner


class IsOwnerOrClientMember(BasePermission):
    """
    Owners always pass; client users pass only when they belong to a client.

    Object-level scoping (a client user touching another client's data) is
    enforced by the views through Actor.can_access_client.
    """
    message = 'You must be an owner or belong to a client.'

    def has_permission(self, request, view):
        actor = actor_from_request(request)
        if actor is None:
            return False
        return actor.is_owner or actor.client_id is not None
