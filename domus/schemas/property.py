import json
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from typing import Any, Optional, List, Type, TypeVar
from uuid import UUID
from datetime import datetime
from domus.core.exceptions import ValidationError
from domus.schemas.geography import AddressCreate, AddressUpdate, AddressResponse


# ─── Property fields ──────────────────────────────────────────────────────────

class PropertyBase(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    property_type: Optional[str] = Field(None, max_length=50)
    registry_number: Optional[str] = Field(None, max_length=100)
    functional_unit: Optional[str] = Field(None, max_length=50)
    owner_intention: Optional[str] = Field(None, max_length=50)
    commercial_status: Optional[str] = Field(None, max_length=50)
    property_condition: Optional[str] = Field(None, max_length=50)
    price: Optional[float] = Field(None, ge=0)

    covered_meters: Optional[float] = Field(None, ge=0)
    uncovered_meters: Optional[float] = Field(None, ge=0)
    rooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    year_of_construction: Optional[int] = Field(None, ge=1600, le=2200)

    electricity_identifier: Optional[str] = Field(None, max_length=100)
    gas_identifier: Optional[str] = Field(None, max_length=100)
    abl_identifier: Optional[str] = Field(None, max_length=100)

    administration_name: Optional[str] = Field(None, max_length=150)
    administration_phone: Optional[str] = Field(None, max_length=30)
    administration_email: Optional[str] = Field(None, max_length=255)
    administration_address: Optional[str] = Field(None, max_length=255)

    owner_name: Optional[str] = Field(None, max_length=150)
    owner_phone: Optional[str] = Field(None, max_length=30)
    owner_cbu: Optional[str] = Field(None, max_length=30)
    owner_alias: Optional[str] = Field(None, max_length=50)

    has_expenses: Optional[bool] = None
    has_extraordinary_expenses: Optional[bool] = None
    has_kitchen: Optional[bool] = None
    has_patio: Optional[bool] = None
    has_barbecue: Optional[bool] = None
    has_terrace: Optional[bool] = None
    has_pool: Optional[bool] = None
    has_garden: Optional[bool] = None
    has_balcony: Optional[bool] = None
    has_furnished: Optional[bool] = None
    has_zoom: Optional[bool] = None
    has_parking: Optional[bool] = None
    services_comment: Optional[str] = None


class PropertyCreate(PropertyBase):
    address: AddressCreate


class PropertyUpdate(PropertyBase):
    address: Optional[AddressUpdate] = None
    # URLs to keep; anything stored but not listed here is deleted
    images: Optional[List[str]] = None
    documents: Optional[List[str]] = None


class PropertyResponse(PropertyBase):
    id: UUID
    thumbnail: Optional[str] = None
    images: List[str] = []
    documents: List[str] = []
    address: AddressResponse
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PropertyListResponse(BaseModel):
    data: List[PropertyResponse]
    total: int
    page: int
    limit: int


# ─── Request boundary ─────────────────────────────────────────────────────────

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_property_payload(raw: Any, schema: Type[SchemaT]) -> SchemaT:
    """
    Resolve the ``data`` field of a property request into ``schema``.

    Multipart clients send it as a JSON string, JSON clients as an object.
    """
    if raw is None or raw == "":
        raise ValidationError("'data' is required.")

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            raise ValidationError("'data' must be a valid JSON string.")

    if not isinstance(raw, dict):
        raise ValidationError("'data' must be a JSON object.")

    try:
        return schema.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid property data",
            errors=[_format_error(err) for err in e.errors()],
        )


def _format_error(err: dict) -> str:
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err.get('msg')}" if location else err.get("msg", "")
