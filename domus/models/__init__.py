from domus.models.base import Base, BaseModel
from domus.models.user import Role, RoleName, User, user_roles, DEFAULT_ROLE
from domus.models.geography import Address, City, Country, PostalCode, Province
from domus.models.user_profile import UserProfile, Gender, ThemePreference
from domus.models.property import Property

__all__ = [
    "Base", "BaseModel",
    "Role", "RoleName", "User", "user_roles", "DEFAULT_ROLE",
    "Address", "City", "Country", "PostalCode", "Province",
    "UserProfile", "Gender", "ThemePreference",
    "Property",
]
