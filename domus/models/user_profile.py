from sqlalchemy import Column, ForeignKey, Integer, String, Text, Uuid, Date
from sqlalchemy.orm import relationship
from domus.models.base import Base, TimestampMixin
import enum


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"
    OTHER = "other"


class ThemePreference(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class UserProfile(TimestampMixin, Base):
    __tablename__ = "user_profiles"

    # Shares the primary key of its user
    id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    national_id = Column(String(30), nullable=True)
    phone = Column(String(30), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    bio = Column(Text, nullable=True)
    nationality = Column(String(100), nullable=True)
    language = Column(String(20), nullable=True)
    theme_preference = Column(String(10), nullable=True)

    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), unique=True, nullable=True)
    address = relationship("Address", lazy="joined")

    @property
    def user_id(self):
        return self.id
