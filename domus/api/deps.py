import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from domus.api.access import OWNERSHIP_RESOLVERS, RouteAccess, route_access
from domus.core.database import get_db
from domus.core.exceptions import DomusError, Forbidden, Unauthorized, UnsupportedResourceType
from domus.services.auth_service import AuthService
from domus.services.geography_service import GeographyService
from domus.services.property_service import PropertyService
from domus.services.user_profile_service import UserProfileService
from domus.services.user_service import UserService
from domus.utils.auth import Principal, decode_token
from domus.utils.email import EmailSender, get_email_sender
from domus.utils.file_storage import AssetStorage, get_storage

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ─── Guard chain ──────────────────────────────────────────────────────────────

def authenticate(credentials: Optional[HTTPAuthorizationCredentials]) -> Principal:
    """Token stage: a valid bearer token or Unauthorized."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthorized("Not authenticated")
    try:
        return Principal.from_claims(decode_token(credentials.credentials))
    except DomusError:
        raise
    except Exception as e:
        logger.warning(f"Token rejected: {e}")
        raise Unauthorized("Invalid token")


def ensure_active(db: Session, principal: Principal) -> None:
    """The token subject must still be an active account."""
    if UserService(db).find(principal.subject_id) is None:
        raise Unauthorized("Account is inactive or no longer exists")


def check_roles(principal: Principal, access: RouteAccess) -> None:
    if access.required_roles and not (principal.roles & access.required_roles):
        raise Forbidden(f"Requires one of the roles: {', '.join(sorted(access.required_roles))}")


def check_ownership(db: Session, request: Request, principal: Principal, access: RouteAccess) -> None:
    """
    Ownership stage. Admins always pass; a resource that does not exist
    also passes so the handler can answer 404.
    """
    if access.resource_type is None or principal.is_admin:
        return

    resolver = OWNERSHIP_RESOLVERS.get(access.resource_type)
    if resolver is None:
        raise UnsupportedResourceType(access.resource_type)

    resource_id = request.path_params.get(access.id_param)
    if resource_id is None:
        raise Forbidden("Resource id missing from the request")

    owner_id = resolver(db, str(resource_id))
    if owner_id is None:
        return
    if owner_id != principal.subject_id:
        raise Forbidden("You can only access your own resources")


def guard(route_name: str):
    """
    Dependency factory for a route listed in the access table.

    The lookup happens when the router module is imported, so a route
    missing from the table fails at startup rather than at request time.
    """
    access = route_access(route_name)

    async def route_guard(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: Session = Depends(get_db),
    ) -> Principal:
        principal = authenticate(credentials)
        ensure_active(db, principal)
        request.state.principal = principal
        check_roles(principal, access)
        check_ownership(db, request, principal, access)
        return principal

    route_guard.__name__ = f"guard_{route_name.replace('.', '_')}"
    return route_guard


# ─── Services ─────────────────────────────────────────────────────────────────

def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_user_profile_service(db: Session = Depends(get_db)) -> UserProfileService:
    return UserProfileService(db)


def get_geography_service(db: Session = Depends(get_db)) -> GeographyService:
    return GeographyService(db)


def get_auth_service(
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(db, email_sender)


def get_property_service(
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
) -> PropertyService:
    return PropertyService(db, storage)
