"""
Request-scoped identity of the caller.

Business logic never looks up a "current user" on its own; views build an
Actor from the authenticated request and pass it down explicitly.
"""
from dataclasses import dataclass
from typing import Optional

ROLE_OWNER = 'owner'
ROLE_CLIENT = 'client'


@dataclass(frozen=True)
class Actor:
    id: int
    role: str
    client_id: Optional[int] = None

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER

    @property
    def is_client(self) -> bool:
        return self.role == ROLE_CLIENT

    def can_access_client(self, client_id) -> bool:
        """Owners see every client, client users only their own"""
        if self.is_owner:
            return True
        return self.client_id is not None and self.client_id == client_id


def actor_for_user(user) -> Optional[Actor]:
    """Build an Actor from a user instance; None means unauthenticated"""
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    return Actor(id=user.pk, role=user.role, client_id=user.client_id)


def actor_from_request(request) -> Optional[Actor]:
    return actor_for_user(getattr(request, 'user', None))
