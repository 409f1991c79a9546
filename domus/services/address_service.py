"""
Address persistence.

Every address points at a City and a PostalCode row that must already
exist. The service only flushes; the caller owns the transaction.
"""

import logging

from sqlalchemy.orm import Session

from domus.core.exceptions import NotFound
from domus.models.geography import Address, City, PostalCode
from domus.schemas.geography import AddressCreate, AddressUpdate

logger = logging.getLogger(__name__)


class AddressService:
    def __init__(self, db: Session):
        self.db = db

    def _city(self, city_id: str) -> City:
        city = self.db.get(City, city_id)
        if city is None:
            raise NotFound(f"City {city_id} not found")
        return city

    def _postal_code(self, postal_code_id: int) -> PostalCode:
        postal_code = self.db.get(PostalCode, postal_code_id)
        if postal_code is None:
            raise NotFound(f"Postal code {postal_code_id} not found")
        return postal_code

    def get(self, address_id: int) -> Address:
        address = self.db.get(Address, address_id)
        if address is None:
            raise NotFound(f"Address {address_id} not found")
        return address

    def create(self, data: AddressCreate) -> Address:
        city = self._city(data.city_id)
        postal_code = self._postal_code(data.postal_code_id)

        address = Address(
            **data.model_dump(exclude={"city_id", "postal_code_id"}),
            city=city,
            postal_code=postal_code,
        )
        self.db.add(address)
        self.db.flush()
        return address

    def update(self, address_id: int, data: AddressUpdate) -> Address:
        address = self.get(address_id)
        changes = data.model_dump(exclude_unset=True)

        if "city_id" in changes:
            address.city = self._city(changes.pop("city_id"))
        if "postal_code_id" in changes:
            address.postal_code = self._postal_code(changes.pop("postal_code_id"))

        for field, value in changes.items():
            setattr(address, field, value)

        self.db.flush()
        return address

    def delete(self, address_id: int) -> None:
        address = self.db.get(Address, address_id)
        if address is not None:
            self.db.delete(address)
            self.db.flush()
