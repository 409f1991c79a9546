from pydantic import BaseModel, Field, model_validator
from typing import Optional, List


# ─── Reference data ───────────────────────────────────────────────────────────

class CountryResponse(BaseModel):
    id: int
    name: str
    iso_code: str
    phone_prefix: Optional[str] = None
    currency_code: Optional[str] = None
    currency_symbol: Optional[str] = None
    latitude: float
    longitude: float
    default_zoom: int

    model_config = {"from_attributes": True}


class ProvinceResponse(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    default_zoom: int
    country_id: int

    model_config = {"from_attributes": True}


class PostalCodeResponse(BaseModel):
    id: int
    code: str
    city_id: str

    model_config = {"from_attributes": True}


class CityResponse(BaseModel):
    id: str
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    province_id: str

    model_config = {"from_attributes": True}


class CityDetailResponse(CityResponse):
    province: ProvinceResponse
    country: Optional[CountryResponse] = None
    postal_codes: List[PostalCodeResponse] = []


class CityCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    province_id: str = Field(..., min_length=1, max_length=10)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    postal_code: Optional[str] = Field(None, min_length=1, max_length=10)

    model_config = {"str_strip_whitespace": True}


# ─── Addresses ────────────────────────────────────────────────────────────────

class AddressCreate(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    number: str = Field(..., min_length=1, max_length=50)
    apartment: Optional[str] = Field(None, max_length=50)
    neighborhood: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    nomenclator: Optional[str] = Field(None, max_length=255)
    city_id: str
    postal_code_id: int


class AddressUpdate(BaseModel):
    """Partial update: only the fields present in the payload are applied."""

    street: Optional[str] = Field(None, min_length=1, max_length=255)
    number: Optional[str] = Field(None, min_length=1, max_length=50)
    apartment: Optional[str] = Field(None, max_length=50)
    neighborhood: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    nomenclator: Optional[str] = Field(None, max_length=255)
    city_id: Optional[str] = None
    postal_code_id: Optional[int] = None

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in ("street", "number", "city_id", "postal_code_id"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class AddressResponse(BaseModel):
    id: int
    street: str
    number: str
    apartment: Optional[str] = None
    neighborhood: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    nomenclator: Optional[str] = None
    city: CityResponse
    postal_code: PostalCodeResponse

    model_config = {"from_attributes": True}
