from fastapi import APIRouter, Depends, Query, status
from typing import List
from domus.api.deps import get_geography_service, guard
from domus.schemas.geography import (
    CityCreate, CityDetailResponse, CityResponse, CountryResponse,
    PostalCodeResponse, ProvinceResponse,
)
from domus.services.geography_service import GeographyService
from domus.utils.auth import Principal

router = APIRouter(prefix="/geography", tags=["Geography"])


@router.get("/countries", response_model=List[CountryResponse])
async def list_countries(geo: GeographyService = Depends(get_geography_service)):
    return [CountryResponse.model_validate(c) for c in geo.list_countries()]


@router.get("/provinces", response_model=List[ProvinceResponse])
async def list_provinces(geo: GeographyService = Depends(get_geography_service)):
    return [ProvinceResponse.model_validate(p) for p in geo.list_provinces()]


@router.get("/cities", response_model=List[CityResponse])
async def list_cities(geo: GeographyService = Depends(get_geography_service)):
    return [CityResponse.model_validate(c) for c in geo.list_cities()]


@router.get("/countries/{country_id}/provinces", response_model=List[ProvinceResponse])
async def provinces_by_country(country_id: int, geo: GeographyService = Depends(get_geography_service)):
    return [ProvinceResponse.model_validate(p) for p in geo.provinces_by_country(country_id)]


@router.get("/provinces/{province_id}/cities", response_model=List[CityResponse])
async def cities_by_province(province_id: str, geo: GeographyService = Depends(get_geography_service)):
    return [CityResponse.model_validate(c) for c in geo.cities_by_province(province_id)]


@router.get("/cities/{city_id}", response_model=CityDetailResponse)
async def get_city(city_id: str, geo: GeographyService = Depends(get_geography_service)):
    return geo.get_city(city_id)


@router.get("/cities/{city_id}/postal-codes", response_model=List[PostalCodeResponse])
async def postal_codes_by_city(city_id: str, geo: GeographyService = Depends(get_geography_service)):
    return [PostalCodeResponse.model_validate(p) for p in geo.postal_codes_by_city(city_id)]


@router.get("/postal-codes", response_model=List[PostalCodeResponse])
async def find_postal_codes(
    code: str = Query(..., min_length=1, max_length=10),
    geo: GeographyService = Depends(get_geography_service),
):
    """Every city row registered under a postal code."""
    return [PostalCodeResponse.model_validate(p) for p in geo.find_postal_codes(code)]


@router.post("/cities", response_model=CityDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_city(
    data: CityCreate,
    geo: GeographyService = Depends(get_geography_service),
    principal: Principal = Depends(guard("geography.create_city")),
):
    """Create a city and, if given, its postal code in a single transaction."""
    return geo.create_city(data)
