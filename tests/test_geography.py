"""Tests for geography lookups and transactional city creation."""

import pytest

from conftest import register_and_login
from domus.core.bootstrap import seed_geography
from domus.core.exceptions import Conflict, NotFound
from domus.models.geography import City, PostalCode, Province
from domus.schemas.geography import CityCreate
from domus.services.geography_service import GeographyService


class TestCreateCity:
    """Test GeographyService.create_city."""

    def test_missing_province_writes_nothing(self, db):
        with pytest.raises(NotFound):
            GeographyService(db).create_city(CityCreate(id="X", name="Nowhere", province_id="99", postal_code="1234"))
        assert db.query(City).count() == 0
        assert db.query(PostalCode).count() == 0

    def test_city_with_postal_code(self, db):
        city = GeographyService(db).create_city(
            CityCreate(id="ROS", name="Rosario", province_id="82", postal_code="S2000")
        )
        assert city.id == "ROS"
        assert city.province.name == "Santa Fe"
        assert city.country.iso_code == "AR"
        assert [p.code for p in city.postal_codes] == ["S2000"]
        assert city.postal_codes[0].city_id == "ROS"

    def test_city_without_postal_code(self, db):
        city = GeographyService(db).create_city(CityCreate(id="ROS", name="Rosario", province_id="82"))
        assert city.postal_codes == []
        assert db.query(PostalCode).count() == 0

    def test_failed_postal_code_rolls_back_city(self, db, monkeypatch):
        def boom(self, city, code):
            raise RuntimeError("postal code insert failed")

        monkeypatch.setattr(GeographyService, "add_postal_code", boom)
        with pytest.raises(RuntimeError):
            GeographyService(db).create_city(CityCreate(id="ROS", name="Rosario", province_id="82", postal_code="S2000"))

        assert db.query(City).filter(City.id == "ROS").first() is None
        assert db.query(PostalCode).count() == 0

    def test_duplicate_city_conflicts(self, db, city):
        with pytest.raises(Conflict):
            GeographyService(db).create_city(CityCreate(id="CABA", name="Again", province_id="02"))
        assert db.query(PostalCode).count() == 1


class TestLookups:
    def test_seeded_argentina(self, db):
        service = GeographyService(db)
        countries = service.list_countries()
        assert [c.iso_code for c in countries] == ["AR"]
        assert len(service.provinces_by_country(countries[0].id)) == 24

    def test_seeding_is_idempotent(self, db):
        assert seed_geography(db) == {"countries": 0, "provinces": 0}
        assert db.query(Province).count() == 24

    def test_cities_of_unknown_province(self, db):
        with pytest.raises(NotFound):
            GeographyService(db).cities_by_province("99")


class TestGeographyApi:
    def test_public_lookups(self, client, city):
        assert len(client.get("/api/v1/geography/provinces").json()) == 24
        cities = client.get("/api/v1/geography/provinces/02/cities").json()
        assert [c["id"] for c in cities] == ["CABA"]
        codes = client.get("/api/v1/geography/cities/CABA/postal-codes").json()
        assert codes == [{"id": city["postal_code_id"], "code": "C1425", "city_id": "CABA"}]
        found = client.get("/api/v1/geography/postal-codes", params={"code": "C1425"}).json()
        assert [p["city_id"] for p in found] == ["CABA"]

    def test_admin_creates_city(self, client, admin_headers):
        response = client.post(
            "/api/v1/geography/cities",
            json={"id": "MDZ", "name": "Mendoza", "province_id": "50", "postal_code": "M5500"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["province"]["id"] == "50"
        assert body["postal_codes"][0]["code"] == "M5500"

    def test_blank_postal_code_is_400(self, client, admin_headers, db):
        response = client.post(
            "/api/v1/geography/cities",
            json={"id": "MDZ", "name": "Mendoza", "province_id": "50", "postal_code": "   "},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert db.query(City).count() == 0
        assert db.query(PostalCode).count() == 0

    def test_padded_values_are_trimmed(self, client, admin_headers):
        response = client.post(
            "/api/v1/geography/cities",
            json={"id": " MDZ ", "name": " Mendoza ", "province_id": "50", "postal_code": " M5500 "},
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert (body["id"], body["name"]) == ("MDZ", "Mendoza")
        assert body["postal_codes"][0]["code"] == "M5500"

    def test_unknown_province_is_404(self, client, admin_headers):
        response = client.post(
            "/api/v1/geography/cities",
            json={"id": "MDZ", "name": "Mendoza", "province_id": "99"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_regular_user_cannot_create_city(self, client):
        _, headers = register_and_login(client, "u@x.com")
        response = client.post(
            "/api/v1/geography/cities",
            json={"id": "MDZ", "name": "Mendoza", "province_id": "50"},
            headers=headers,
        )
        assert response.status_code == 403

    def test_seeder_endpoint_is_admin_only(self, client, admin_headers):
        _, headers = register_and_login(client, "u@x.com")
        assert client.post("/api/v1/seeder/geography", headers=headers).status_code == 403
        response = client.post("/api/v1/seeder/geography", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["created"] == {"countries": 0, "provinces": 0}
