"""Unit tests for AddressService."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from domus.core.exceptions import NotFound
from domus.models.geography import City, PostalCode
from domus.schemas.geography import AddressCreate, AddressUpdate
from domus.services.address_service import AddressService


def _address(city, **overrides):
    data = {"street": "Av. Santa Fe", "number": "1234", "apartment": "4B", **city, **overrides}
    return AddressCreate(**data)


class TestCreate:
    def test_binds_city_and_postal_code(self, db, city):
        address = AddressService(db).create(_address(city))
        db.commit()
        assert address.id is not None
        assert address.city.id == "CABA"
        assert address.postal_code.code == "C1425"

    def test_unknown_city(self, db, city):
        with pytest.raises(NotFound):
            AddressService(db).create(_address(city, city_id="NOPE"))

    def test_unknown_postal_code(self, db, city):
        with pytest.raises(NotFound):
            AddressService(db).create(_address(city, postal_code_id=9999))

    def test_requires_city_and_postal_code(self):
        with pytest.raises(PydanticValidationError):
            AddressCreate(street="Av. Santa Fe", number="1234")


class TestUpdate:
    def test_only_supplied_fields_change(self, db, city):
        service = AddressService(db)
        address = service.create(_address(city, neighborhood="Palermo"))
        db.commit()

        updated = service.update(address.id, AddressUpdate(number="99"))
        db.commit()

        assert updated.number == "99"
        assert updated.street == "Av. Santa Fe"
        assert updated.apartment == "4B"
        assert updated.neighborhood == "Palermo"
        assert updated.city_id == "CABA"
        assert updated.postal_code_id == city["postal_code_id"]

    def test_optional_field_can_be_cleared(self, db, city):
        service = AddressService(db)
        address = service.create(_address(city))
        updated = service.update(address.id, AddressUpdate(apartment=None))
        assert updated.apartment is None
        assert updated.street == "Av. Santa Fe"

    def test_city_is_re_resolved(self, db, city):
        db.add(City(id="LP", name="La Plata", province_id="06"))
        db.flush()
        db.add(PostalCode(code="B1900", city_id="LP"))
        db.commit()
        service = AddressService(db)
        address = service.create(_address(city))

        updated = service.update(address.id, AddressUpdate(city_id="LP"))
        assert updated.city.name == "La Plata"

        with pytest.raises(NotFound):
            service.update(address.id, AddressUpdate(city_id="NOPE"))

    def test_null_required_field_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            AddressUpdate(street=None)

    def test_unknown_address(self, db):
        with pytest.raises(NotFound):
            AddressService(db).update(12345, AddressUpdate(number="1"))
