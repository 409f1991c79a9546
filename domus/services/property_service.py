"""
Property CRUD.

A property owns one Address and a set of uploaded assets stored under
``properties/{id}/images`` and ``properties/{id}/documents``. Rows are
only committed once every upload of the request has completed.
"""

import asyncio
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from domus.core.exceptions import NotFound
from domus.models.property import Property
from domus.schemas.property import PropertyCreate, PropertyUpdate
from domus.services.address_service import AddressService
from domus.services.user_service import _as_uuid
from domus.utils.file_storage import AssetStorage, PreparedUpload

logger = logging.getLogger(__name__)

ASSET_FIELDS = {"address", "images", "documents"}


def _folders(property_id) -> Tuple[str, str]:
    return f"properties/{property_id}/images", f"properties/{property_id}/documents"


class PropertyService:
    def __init__(self, db: Session, storage: AssetStorage):
        self.db = db
        self.storage = storage
        self.addresses = AddressService(db)

    # ─── Reads ────────────────────────────────────────────────────────────────

    def get(self, property_id) -> Property:
        uid = _as_uuid(property_id)
        prop = self.db.get(Property, uid) if uid is not None else None
        if prop is None:
            raise NotFound(f"Property {property_id} not found")
        return prop

    def list_properties(
        self,
        page: int = 1,
        limit: int = 10,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        rooms: Optional[int] = None,
    ) -> Tuple[List[Property], int]:
        query = self.db.query(Property)
        if min_price is not None:
            query = query.filter(Property.price >= min_price)
        if max_price is not None:
            query = query.filter(Property.price <= max_price)
        if rooms is not None and rooms > 0:
            query = query.filter(Property.rooms >= rooms)

        total = query.count()
        items = (
            query.order_by(Property.created_at.desc(), Property.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    # ─── Writes ───────────────────────────────────────────────────────────────

    async def create(
        self,
        data: PropertyCreate,
        thumbnail: Optional[PreparedUpload] = None,
        images: Optional[List[PreparedUpload]] = None,
        documents: Optional[List[PreparedUpload]] = None,
    ) -> Property:
        property_id = uuid.uuid4()
        uploaded: List[str] = []
        try:
            address = self.addresses.create(data.address)
            prop = Property(
                id=property_id,
                address=address,
                images=[],
                documents=[],
                **data.model_dump(exclude=ASSET_FIELDS, exclude_none=True),
            )
            self.db.add(prop)
            self.db.flush()

            thumb_url, image_urls, document_urls = await self._upload_assets(
                property_id, thumbnail, images or [], documents or []
            )
            uploaded = [u for u in [thumb_url, *image_urls, *document_urls] if u]

            prop.thumbnail = thumb_url
            prop.images = image_urls
            prop.documents = document_urls
            self.db.commit()
        except Exception:
            self.db.rollback()
            await self.storage.delete_urls(uploaded)
            raise

        self.db.refresh(prop)
        logger.info(f"Property created: {prop.id} ({len(prop.images)} images, {len(prop.documents)} documents)")
        return prop

    async def update(
        self,
        property_id,
        data: PropertyUpdate,
        thumbnail: Optional[PreparedUpload] = None,
        images: Optional[List[PreparedUpload]] = None,
        documents: Optional[List[PreparedUpload]] = None,
    ) -> Property:
        prop = self.get(property_id)
        uploaded: List[str] = []
        discarded: List[str] = []
        try:
            for field, value in data.model_dump(exclude=ASSET_FIELDS, exclude_unset=True).items():
                if value is None and field.startswith("has_"):
                    continue
                setattr(prop, field, value)

            if data.address is not None:
                self.addresses.update(prop.address_id, data.address)

            current_images = list(prop.images or [])
            current_documents = list(prop.documents or [])
            if data.images is not None:
                discarded += [u for u in current_images if u not in data.images]
                current_images = [u for u in current_images if u in data.images]
            if data.documents is not None:
                discarded += [u for u in current_documents if u not in data.documents]
                current_documents = [u for u in current_documents if u in data.documents]

            thumb_url, image_urls, document_urls = await self._upload_assets(
                prop.id, thumbnail, images or [], documents or []
            )
            uploaded = [u for u in [thumb_url, *image_urls, *document_urls] if u]

            if thumb_url:
                if prop.thumbnail:
                    discarded.append(prop.thumbnail)
                prop.thumbnail = thumb_url
            # Reassign so the JSON columns are flagged dirty
            prop.images = current_images + image_urls
            prop.documents = current_documents + document_urls
            self.db.commit()
        except Exception:
            self.db.rollback()
            await self.storage.delete_urls(uploaded)
            raise

        await self.storage.delete_urls(discarded)
        self.db.refresh(prop)
        logger.info(f"Property updated: {prop.id}")
        return prop

    async def remove(self, property_id) -> None:
        prop = self.get(property_id)
        assets = [u for u in [prop.thumbnail, *(prop.images or []), *(prop.documents or [])] if u]
        await self.storage.delete_urls(assets)

        address_id = prop.address_id
        try:
            self.db.delete(prop)
            self.db.flush()
            self.addresses.delete(address_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Property deleted: {property_id}")

    # ─── Helpers ──────────────────────────────────────────────────────────────

    async def _upload_assets(
        self,
        property_id,
        thumbnail: Optional[PreparedUpload],
        images: List[PreparedUpload],
        documents: List[PreparedUpload],
    ) -> Tuple[Optional[str], List[str], List[str]]:
        """Upload the three batches concurrently; all of them land or none."""
        images_folder, documents_folder = _folders(property_id)
        batches = await asyncio.gather(
            self.storage.upload_many([thumbnail] if thumbnail else [], images_folder),
            self.storage.upload_many(images, images_folder),
            self.storage.upload_many(documents, documents_folder),
            return_exceptions=True,
        )
        failures = [b for b in batches if isinstance(b, BaseException)]
        if failures:
            completed = [url for b in batches if isinstance(b, list) for url in b]
            await self.storage.delete_urls(completed)
            raise failures[0]

        thumbs, image_urls, document_urls = batches
        return (thumbs[0] if thumbs else None), image_urls, document_urls
