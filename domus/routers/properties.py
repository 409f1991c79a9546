import json
from fastapi import APIRouter, Depends, Query, Request, Response, status
from starlette.datastructures import UploadFile as StarletteUploadFile
from typing import Any, List, Optional, Tuple
from uuid import UUID
from domus.api.deps import get_property_service, guard
from domus.core.config import settings
from domus.core.exceptions import ValidationError
from domus.schemas.property import (
    PropertyCreate, PropertyListResponse, PropertyResponse, PropertyUpdate,
    parse_property_payload,
)
from domus.services.property_service import PropertyService
from domus.utils.auth import Principal
from domus.utils.file_storage import (
    DOCUMENT_RULE, IMAGE_RULE, PreparedUpload, prepare_upload, prepare_uploads,
)

router = APIRouter(prefix="/properties", tags=["Properties"])


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _files(values: List[Any]) -> List[StarletteUploadFile]:
    return [v for v in values if isinstance(v, StarletteUploadFile) and v.filename]


async def _read_request(
    request: Request,
) -> Tuple[Any, Optional[PreparedUpload], List[PreparedUpload], List[PreparedUpload]]:
    """
    Split a property request into (raw data, thumbnail, images, documents).

    Multipart requests carry the property as a JSON string in the 'data'
    field next to the 'thumbnail', 'images' and 'documents' file fields.
    JSON requests carry it either under 'data' or as the whole body.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        thumbnails = _files(form.getlist("thumbnail"))
        if len(thumbnails) > 1:
            raise ValidationError("Only one thumbnail is allowed.")

        # ── Validate every file before anything is uploaded ───────────────────
        thumbnail = await prepare_upload(thumbnails[0], IMAGE_RULE) if thumbnails else None
        images = await prepare_uploads(_files(form.getlist("images")), IMAGE_RULE, settings.MAX_IMAGES_PER_PROPERTY)
        documents = await prepare_uploads(
            _files(form.getlist("documents")), DOCUMENT_RULE, settings.MAX_DOCUMENTS_PER_PROPERTY
        )
        return form.get("data"), thumbnail, images, documents

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON.")
    if isinstance(body, dict) and "data" in body:
        body = body["data"]
    return body, None, [], []


# ─── CREATE ───────────────────────────────────────────────────────────────────

@router.post("/", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    request: Request,
    properties: PropertyService = Depends(get_property_service),
    principal: Principal = Depends(guard("properties.create")),
):
    """
    Create a property with its address.
    Accepts application/json, or multipart/form-data with the property in
    'data' plus optional 'thumbnail', 'images' and 'documents' files.
    """
    raw, thumbnail, images, documents = await _read_request(request)
    data = parse_property_payload(raw, PropertyCreate)
    prop = await properties.create(data, thumbnail, images, documents)
    return PropertyResponse.model_validate(prop)


# ─── LIST (public) ────────────────────────────────────────────────────────────

@router.get("/", response_model=PropertyListResponse)
async def list_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    rooms: Optional[int] = Query(None, ge=0),
    properties: PropertyService = Depends(get_property_service),
):
    items, total = properties.list_properties(page, limit, min_price, max_price, rooms)
    return PropertyListResponse(
        data=[PropertyResponse.model_validate(p) for p in items],
        total=total,
        page=page,
        limit=limit,
    )


# ─── GET single property (public) ────────────────────────────────────────────

@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(property_id: UUID, properties: PropertyService = Depends(get_property_service)):
    return PropertyResponse.model_validate(properties.get(property_id))


# ─── UPDATE ───────────────────────────────────────────────────────────────────

@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: UUID,
    request: Request,
    properties: PropertyService = Depends(get_property_service),
    principal: Principal = Depends(guard("properties.update")),
):
    """
    Partial update. New files are appended; 'images' / 'documents' URL lists
    in the data keep only the listed assets. A new thumbnail replaces the old.
    """
    raw, thumbnail, images, documents = await _read_request(request)
    data = parse_property_payload(raw if raw is not None else {}, PropertyUpdate)
    prop = await properties.update(property_id, data, thumbnail, images, documents)
    return PropertyResponse.model_validate(prop)


# ─── DELETE ───────────────────────────────────────────────────────────────────

@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_property(
    property_id: UUID,
    properties: PropertyService = Depends(get_property_service),
    principal: Principal = Depends(guard("properties.delete")),
):
    await properties.remove(property_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
