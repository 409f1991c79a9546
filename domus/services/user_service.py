import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from domus.core.exceptions import Conflict, Forbidden, NotFound
from domus.models.user import DEFAULT_ROLE, Role, User
from domus.models.user_profile import UserProfile
from domus.schemas.user import UserProfileResponse, UserResponse, UserUpdate
from domus.utils.auth import Principal, get_password_hash

logger = logging.getLogger(__name__)


def _as_uuid(value) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class UserService:
    def __init__(self, db: Session):
        self.db = db

    # ─── Reads ────────────────────────────────────────────────────────────────

    def list_users(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.is_deleted.is_(False))
            .order_by(User.created_at)
            .all()
        )

    def find(self, user_id) -> Optional[User]:
        """Active user by id, or None."""
        uid = _as_uuid(user_id)
        if uid is None:
            return None
        user = self.db.get(User, uid)
        if user is None or user.is_deleted:
            return None
        return user

    def get(self, user_id) -> User:
        user = self.find(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_role(self, name: str) -> Role:
        role = self.db.query(Role).filter(Role.name == name).first()
        if role is None:
            raise NotFound(f"Role {name} not found")
        return role

    def to_response(self, user: User) -> UserResponse:
        profile = self.db.get(UserProfile, user.id)
        response = UserResponse.model_validate(user)
        if profile is not None:
            response.profile = UserProfileResponse.model_validate(profile)
        return response

    # ─── Writes ───────────────────────────────────────────────────────────────

    def create(self, email: str, password: str, role: str = DEFAULT_ROLE) -> User:
        """
        Create an account, or reactivate a soft-deleted one with the same email.

        Raises Conflict when an active account already uses the email.
        """
        email = email.lower()
        existing = self.find_by_email(email)
        if existing is not None and not existing.is_deleted:
            raise Conflict("Email already registered")

        if existing is not None:
            existing.is_deleted = False
            existing.deleted_at = None
            existing.password_hash = get_password_hash(password)
            existing.roles = [self.get_role(role)]
            user = existing
            logger.info(f"Reactivated user {user.id}")
        else:
            user = User(
                email=email,
                password_hash=get_password_hash(password),
                roles=[self.get_role(role)],
            )
            self.db.add(user)

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User registered: {user.id}")
        return user

    def update(self, user_id, data: UserUpdate, actor: Principal) -> User:
        user = self.get(user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "role" in changes:
            if not actor.is_admin:
                raise Forbidden("Only administrators can change roles")
            user.roles = [self.get_role(changes["role"].value)]

        if "email" in changes:
            email = changes["email"].lower()
            other = self.find_by_email(email)
            if other is not None and other.id != user.id:
                raise Conflict("Email already registered")
            user.email = email

        if "password" in changes:
            user.password_hash = get_password_hash(changes["password"])

        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id, password: str) -> None:
        user = self.get(user_id)
        user.password_hash = get_password_hash(password)
        self.db.commit()
        logger.info(f"Password changed for user {user.id}")

    def soft_delete(self, user_id) -> None:
        user = self.get(user_id)
        user.is_deleted = True
        user.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"User {user.id} deactivated")

    deactivate = soft_delete
    remove = soft_delete
