import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.orm import Session

from domus.core.config import settings
from domus.core.exceptions import Conflict, NotFound, ValidationError
from domus.models.geography import Address
from domus.models.property import Property
from domus.models.user_profile import UserProfile
from domus.schemas.geography import AddressCreate, AddressUpdate
from domus.schemas.user import UserProfileCreate, UserProfileUpdate
from domus.services.address_service import AddressService
from domus.services.user_service import UserService, _as_uuid

logger = logging.getLogger(__name__)

PROFILE_REQUIRED_FIELDS = ("first_name", "last_name", "national_id", "phone")
ADDRESS_REQUIRED_FIELDS = ("street", "number", "city_id", "postal_code_id")


def _missing(values: dict, required) -> List[str]:
    return [name for name in required if values.get(name) in (None, "")]


class UserProfileService:
    def __init__(self, db: Session):
        self.db = db
        self.addresses = AddressService(db)
        self.users = UserService(db)

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ─── Reads ────────────────────────────────────────────────────────────────

    def list_profiles(self) -> List[UserProfile]:
        return self.db.query(UserProfile).order_by(UserProfile.last_name, UserProfile.first_name).all()

    def find(self, profile_id) -> Optional[UserProfile]:
        uid = _as_uuid(profile_id)
        return self.db.get(UserProfile, uid) if uid is not None else None

    def get(self, profile_id) -> UserProfile:
        profile = self.find(profile_id)
        if profile is None:
            raise NotFound(f"Profile {profile_id} not found")
        return profile

    # ─── Writes ───────────────────────────────────────────────────────────────

    def create(self, data: UserProfileCreate) -> UserProfile:
        user = self.users.get(data.user_id)
        if self.find(user.id) is not None:
            raise Conflict("The user already has a profile")

        with self._transaction():
            fields = data.model_dump(exclude={"user_id", "address_id", "address"})
            profile = UserProfile(id=user.id, **fields)

            if data.address is not None:
                profile.address = self.addresses.create(data.address)
            elif data.address_id is not None:
                profile.address = self._unowned_address(data.address_id)

            self.db.add(profile)

        self.db.refresh(profile)
        logger.info(f"Profile created for user {user.id}")
        return profile

    def update(self, profile_id, data: UserProfileUpdate) -> UserProfile:
        profile = self.get(profile_id)
        with self._transaction():
            self._apply(profile, data)
        self.db.refresh(profile)
        return profile

    def update_by_user_id(self, user_id, data: UserProfileUpdate) -> UserProfile:
        """
        Upsert the profile of ``user_id``.

        Creating requires first_name, last_name, national_id and phone; an
        existing profile is updated with whatever fields were sent.
        """
        user = self.users.get(user_id)
        profile = self.find(user.id)

        with self._transaction():
            if profile is None:
                values = data.model_dump(exclude={"address"}, exclude_unset=True)
                missing = _missing(values, PROFILE_REQUIRED_FIELDS)
                if missing:
                    raise ValidationError(
                        "Missing required fields to create the profile",
                        errors=[f"{name} is required" for name in missing],
                    )
                profile = UserProfile(id=user.id, **values)
                self.db.add(profile)
                self.db.flush()
                if data.address is not None:
                    self._upsert_address(profile, data.address)
            else:
                self._apply(profile, data)

        self.db.refresh(profile)
        return profile

    def add_or_update_address(self, user_id, data: AddressUpdate) -> UserProfile:
        profile = self.find(user_id)
        if profile is None:
            raise NotFound(f"Profile for user {user_id} not found")
        with self._transaction():
            self._upsert_address(profile, data)
        self.db.refresh(profile)
        return profile

    def set_avatar(self, user_id, url: str) -> Optional[str]:
        """Store the new avatar URL and return the one it replaces."""
        profile = self.find(user_id)
        if profile is None:
            raise NotFound("Create your profile before uploading an avatar")
        previous = profile.avatar_url
        with self._transaction():
            profile.avatar_url = url
        return previous

    def remove(self, profile_id) -> None:
        profile = self.get(profile_id)
        address_id = profile.address_id
        with self._transaction():
            self.db.delete(profile)
            self.db.flush()
            if address_id is not None and settings.PROFILE_DELETE_CASCADES_ADDRESS:
                self.addresses.delete(address_id)
        logger.info(f"Profile {profile_id} deleted")

    # ─── Helpers ──────────────────────────────────────────────────────────────

    def _apply(self, profile: UserProfile, data: UserProfileUpdate) -> None:
        changes = data.model_dump(exclude={"address"}, exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in ("first_name", "last_name"):
                raise ValidationError(f"{field} cannot be null")
            setattr(profile, field, value)
        if data.address is not None:
            self._upsert_address(profile, data.address)
        self.db.flush()

    def _upsert_address(self, profile: UserProfile, data: AddressUpdate) -> Address:
        if profile.address_id is not None:
            return self.addresses.update(profile.address_id, data)

        values = data.model_dump(exclude_unset=True)
        missing = _missing(values, ADDRESS_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(
                "Missing required address fields",
                errors=[f"{name} is required" for name in missing],
            )
        address = self.addresses.create(AddressCreate(**values))
        profile.address = address
        self.db.flush()
        return address

    def _unowned_address(self, address_id: int) -> Address:
        address = self.addresses.get(address_id)
        owner = self.db.query(UserProfile).filter(UserProfile.address_id == address_id).first()
        if owner is not None:
            raise Conflict(f"Address {address_id} already belongs to another profile")
        if self.db.query(Property).filter(Property.address_id == address_id).first() is not None:
            raise Conflict(f"Address {address_id} already belongs to a property")
        return address
