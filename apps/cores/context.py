from dataclasses import dataclass

from apps.users.models import Role

from .exceptions import Forbidden


@dataclass(frozen=True)
class Actor:
    """The authenticated requester of a service operation."""

    user_id: int
    role: Role

    @classmethod
    def from_user(cls, user):
        if not user or not user.is_authenticated:
            raise Forbidden("Authentication required.")
        return cls(user_id=user.id, role=Role(user.role))

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def is_client(self):
        return self.role == Role.CLIENT

    @property
    def is_freelancer(self):
        return self.role == Role.FREELANCER


def can_manage(actor, owner_id, allow_admin=True):
    """
    Whether ``actor`` may act on an entity owned by ``owner_id``.

    Every role is handled explicitly; an unknown role is refused.
    """
    if actor.role == Role.ADMIN:
        return allow_admin
    if actor.role == Role.CLIENT:
        return actor.user_id == owner_id
    if actor.role == Role.FREELANCER:
        return False
    return False


def ensure_owner(actor, owner_id, allow_admin=True, message="You are not allowed to manage this project."):
    if not can_manage(actor, owner_id, allow_admin=allow_admin):
        raise Forbidden(message)
