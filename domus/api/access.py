"""
Route access table and ownership resolvers.

Every guarded route is listed here by name. ``required_roles`` empty means
any authenticated caller; ``resource_type`` switches on the ownership check
against the path parameter ``id_param``.
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from domus.models.user_profile import UserProfile
from domus.services.user_service import _as_uuid

ADMIN = "admin"
AGENT = "agent"


@dataclass(frozen=True)
class RouteAccess:
    required_roles: FrozenSet[str] = frozenset()
    resource_type: Optional[str] = None
    id_param: str = "id"


def _roles(*names: str) -> FrozenSet[str]:
    return frozenset(names)


AUTHENTICATED = RouteAccess()
ADMIN_ONLY = RouteAccess(required_roles=_roles(ADMIN))

ROUTE_ACCESS: Dict[str, RouteAccess] = {
    # users
    "users.list": ADMIN_ONLY,
    "users.create": ADMIN_ONLY,
    "users.delete": ADMIN_ONLY,
    "users.me": AUTHENTICATED,
    "users.update_me": AUTHENTICATED,
    "users.upload_avatar": AUTHENTICATED,
    "users.change_password": AUTHENTICATED,
    "users.deactivate_me": AUTHENTICATED,
    "users.get": RouteAccess(resource_type="user", id_param="user_id"),
    "users.update": RouteAccess(resource_type="user", id_param="user_id"),
    # user profiles
    "user_profile.list": ADMIN_ONLY,
    "user_profile.create": ADMIN_ONLY,
    "user_profile.delete": ADMIN_ONLY,
    "user_profile.get": RouteAccess(resource_type="user_profile", id_param="profile_id"),
    "user_profile.update": RouteAccess(resource_type="user_profile", id_param="profile_id"),
    "user_profile.address": RouteAccess(resource_type="user", id_param="user_id"),
    # properties
    "properties.create": RouteAccess(required_roles=_roles(ADMIN, AGENT)),
    "properties.update": RouteAccess(required_roles=_roles(ADMIN, AGENT)),
    "properties.delete": ADMIN_ONLY,
    # geography and seeding
    "geography.create_city": ADMIN_ONLY,
    "seeder.geography": ADMIN_ONLY,
}


# ─── Ownership resolvers ──────────────────────────────────────────────────────
# Each returns the owning user id as a string, or None when the resource
# does not exist.

def _user_owner(db: Session, resource_id: str) -> Optional[str]:
    uid = _as_uuid(resource_id)
    return str(uid) if uid is not None else resource_id


def _user_profile_owner(db: Session, resource_id: str) -> Optional[str]:
    uid = _as_uuid(resource_id)
    if uid is None:
        return None
    profile = db.get(UserProfile, uid)
    return str(profile.id) if profile is not None else None


OWNERSHIP_RESOLVERS: Dict[str, Callable[[Session, str], Optional[str]]] = {
    "user": _user_owner,
    "user_profile": _user_profile_owner,
}


def route_access(route_name: str) -> RouteAccess:
    try:
        return ROUTE_ACCESS[route_name]
    except KeyError:
        raise RuntimeError(f"Route '{route_name}' is missing from the access table") from None
