import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domus.core.exceptions import Conflict, NotFound
from domus.models.geography import City, Country, PostalCode, Province
from domus.schemas.geography import (
    CityCreate, CityDetailResponse, CityResponse, CountryResponse,
    PostalCodeResponse, ProvinceResponse,
)

logger = logging.getLogger(__name__)


class GeographyService:
    def __init__(self, db: Session):
        self.db = db

    # ─── Lookups ──────────────────────────────────────────────────────────────

    def list_countries(self) -> List[Country]:
        return self.db.query(Country).order_by(Country.name).all()

    def list_provinces(self) -> List[Province]:
        return self.db.query(Province).order_by(Province.name).all()

    def list_cities(self) -> List[City]:
        return self.db.query(City).order_by(City.name).all()

    def provinces_by_country(self, country_id: int) -> List[Province]:
        if self.db.get(Country, country_id) is None:
            raise NotFound(f"Country {country_id} not found")
        return (
            self.db.query(Province)
            .filter(Province.country_id == country_id)
            .order_by(Province.name)
            .all()
        )

    def cities_by_province(self, province_id: str) -> List[City]:
        if self.db.get(Province, province_id) is None:
            raise NotFound(f"Province {province_id} not found")
        return (
            self.db.query(City)
            .filter(City.province_id == province_id)
            .order_by(City.name)
            .all()
        )

    def postal_codes_by_city(self, city_id: str) -> List[PostalCode]:
        if self.db.get(City, city_id) is None:
            raise NotFound(f"City {city_id} not found")
        return (
            self.db.query(PostalCode)
            .filter(PostalCode.city_id == city_id)
            .order_by(PostalCode.code)
            .all()
        )

    def find_postal_codes(self, code: str) -> List[PostalCode]:
        return (
            self.db.query(PostalCode)
            .filter(PostalCode.code == code.strip())
            .order_by(PostalCode.city_id)
            .all()
        )

    def get_city(self, city_id: str) -> CityDetailResponse:
        city = self.db.get(City, city_id)
        if city is None:
            raise NotFound(f"City {city_id} not found")
        postal_codes = (
            self.db.query(PostalCode)
            .filter(PostalCode.city_id == city.id)
            .order_by(PostalCode.code)
            .all()
        )
        return CityDetailResponse(
            **CityResponse.model_validate(city).model_dump(),
            province=ProvinceResponse.model_validate(city.province),
            country=CountryResponse.model_validate(city.province.country),
            postal_codes=[PostalCodeResponse.model_validate(p) for p in postal_codes],
        )

    # ─── Writes ───────────────────────────────────────────────────────────────

    def create_city(self, data: CityCreate) -> CityDetailResponse:
        """
        Create a city and, optionally, its first postal code in one transaction.

        The province is checked before anything is written; any failure
        afterwards rolls back both rows.
        """
        try:
            province = self.db.get(Province, data.province_id)
            if province is None:
                raise NotFound(f"Province {data.province_id} not found")
            if self.db.get(City, data.id) is not None:
                raise Conflict(f"City {data.id} already exists")

            city = City(
                id=data.id,
                name=data.name,
                latitude=data.latitude,
                longitude=data.longitude,
                province=province,
            )
            self.db.add(city)
            self.db.flush()

            if data.postal_code:
                self.add_postal_code(city, data.postal_code)

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"City {data.id} rejected by the database: {e.orig}")
            raise Conflict(f"City {data.id} already exists")
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"City created: {data.id} ({data.name})")
        return self.get_city(data.id)

    def add_postal_code(self, city: City, code: str) -> PostalCode:
        postal_code = PostalCode(code=code.strip(), city_id=city.id)
        self.db.add(postal_code)
        self.db.flush()
        return postal_code
