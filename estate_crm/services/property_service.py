"""
services/property_service.py
----------------------------
Property operations, all scoped to the caller's company.

Reads are open to every company member; writes need manage_properties.
Deleting a property also removes its images and files from the object
store on a best-effort basis: a storage failure is logged, not raised,
because the row is already gone.
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.errors import InvalidArgument, NotFound, Page
from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Capability
from estate_crm.core.tenancy import Identity, ensure_capability, ensure_tenant_access
from estate_crm.db.base import utcnow
from estate_crm.models.property import Property
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.schemas.lead import FileReferenceCreate
from estate_crm.schemas.property import MapBounds, PropertyCreate
from estate_crm.services.storage_service import StorageService

logger = get_logger(__name__)

_WRITE_DENIED = "Insufficient permissions to manage properties"
_COLLECTION = "properties"


def file_entry(collection: str, entity_id: str, data: FileReferenceCreate) -> Dict[str, Any]:
    """
    Embedded file reference document stored on leads and properties.

    Raises:
        Forbidden: the key is not under the owning entity's storage prefix.
    """
    StorageService.require_owned_key(collection, entity_id, data.s3_key)
    return {
        "id": str(uuid.uuid4()),
        "name": data.name,
        "type": data.type,
        "size": data.size,
        "url": StorageService.object_url(data.s3_key),
        "s3Key": data.s3_key,
        "createdAt": utcnow().isoformat(),
    }


class PropertyService:

    # ── Reads ────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_properties(
        db: AsyncSession,
        identity: Identity,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Page[Property]:
        return (
            await PropertyRepository(db).get_by_tenant(identity.company_id, page_size, cursor)
        ).unwrap()

    @staticmethod
    async def list_by_status(db: AsyncSession, identity: Identity, status: str) -> List[Property]:
        return (await PropertyRepository(db).list_by_status(identity.company_id, status)).unwrap()

    @staticmethod
    async def search_properties(db: AsyncSession, identity: Identity, term: str) -> List[Property]:
        return (await PropertyRepository(db).search(identity.company_id, term)).unwrap()

    @staticmethod
    async def within_bounds(
        db: AsyncSession, identity: Identity, bounds: MapBounds
    ) -> List[Property]:
        if bounds.south > bounds.north:
            raise InvalidArgument("south must not be greater than north")
        return (
            await PropertyRepository(db).list_within_bounds(
                identity.company_id, bounds.south, bounds.west, bounds.north, bounds.east
            )
        ).unwrap()

    @staticmethod
    async def get_property(db: AsyncSession, identity: Identity, property_id: str) -> Property:
        prop = (await PropertyRepository(db).get_by_id(property_id)).unwrap()
        return ensure_tenant_access(identity, prop, "Property")

    # ── Writes ───────────────────────────────────────────────────────────────

    @staticmethod
    async def create_property(
        db: AsyncSession, identity: Identity, data: PropertyCreate
    ) -> Property:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        values = data.model_dump()
        values["company_id"] = identity.company_id
        prop = (await PropertyRepository(db).create(values)).unwrap()
        logger.info("Property created", property_id=prop.id, company_id=prop.company_id)
        return prop

    @staticmethod
    async def update_property(
        db: AsyncSession, identity: Identity, property_id: str, fields: Dict[str, Any]
    ) -> Property:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        await PropertyService.get_property(db, identity, property_id)
        return (await PropertyRepository(db).patch(property_id, fields)).unwrap()

    @staticmethod
    async def delete_property(db: AsyncSession, identity: Identity, property_id: str) -> None:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        prop = await PropertyService.get_property(db, identity, property_id)
        keys = [StorageService.key_from_url(url) for url in prop.images]
        keys += [entry.get("s3Key") for entry in prop.files]
        keys = [key for key in keys if StorageService.owns_key(_COLLECTION, prop.id, key)]

        (await PropertyRepository(db).delete(prop.id)).unwrap()

        failed = 0
        for key in keys:
            if not await StorageService.delete_quietly(key):
                failed += 1
        if failed:
            logger.warning("Property storage cleanup incomplete", property_id=prop.id, failed=failed)

    # ── Images ───────────────────────────────────────────────────────────────

    @staticmethod
    async def add_image(
        db: AsyncSession, identity: Identity, property_id: str, image_url: str
    ) -> Property:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        prop = await PropertyService.get_property(db, identity, property_id)
        StorageService.require_owned_url(_COLLECTION, prop.id, image_url)
        changes: Dict[str, Any] = {}
        if image_url not in prop.images:
            changes["images"] = prop.images + [image_url]
        if not prop.main_image:
            changes["main_image"] = image_url
        if not changes:
            return prop
        return (await PropertyRepository(db).patch(prop.id, changes)).unwrap()

    @staticmethod
    async def remove_image(
        db: AsyncSession, identity: Identity, property_id: str, image_url: str
    ) -> Property:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        prop = await PropertyService.get_property(db, identity, property_id)
        if image_url not in prop.images:
            raise NotFound("Image not found")
        remaining = [url for url in prop.images if url != image_url]
        changes: Dict[str, Any] = {"images": remaining}
        if prop.main_image == image_url:
            changes["main_image"] = remaining[0] if remaining else None
        prop = (await PropertyRepository(db).patch(prop.id, changes)).unwrap()
        key = StorageService.key_from_url(image_url)
        if StorageService.owns_key(_COLLECTION, prop.id, key):
            await StorageService.delete_quietly(key)
        return prop

    # ── Files ────────────────────────────────────────────────────────────────

    @staticmethod
    async def add_file(
        db: AsyncSession, identity: Identity, property_id: str, data: FileReferenceCreate
    ) -> Dict[str, Any]:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        prop = await PropertyService.get_property(db, identity, property_id)
        entry = file_entry(_COLLECTION, prop.id, data)
        (await PropertyRepository(db).patch(prop.id, {"files": prop.files + [entry]})).unwrap()
        return entry

    @staticmethod
    async def delete_file(
        db: AsyncSession, identity: Identity, property_id: str, file_id: str
    ) -> Property:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        prop = await PropertyService.get_property(db, identity, property_id)
        entry = next((item for item in prop.files if item.get("id") == file_id), None)
        if entry is None:
            raise NotFound("File not found")
        remaining = [item for item in prop.files if item.get("id") != file_id]
        prop = (await PropertyRepository(db).patch(prop.id, {"files": remaining})).unwrap()
        if StorageService.owns_key(_COLLECTION, prop.id, entry.get("s3Key")):
            await StorageService.delete_quietly(entry["s3Key"])
        return prop

    @staticmethod
    async def file_download_url(
        db: AsyncSession, identity: Identity, property_id: str, file_id: str
    ) -> str:
        prop = await PropertyService.get_property(db, identity, property_id)
        entry = next((item for item in prop.files if item.get("id") == file_id), None)
        if entry is None or not entry.get("s3Key"):
            raise NotFound("File not found")
        key = StorageService.require_owned_key(_COLLECTION, prop.id, entry["s3Key"])
        return await StorageService.presign_download(key)

    @staticmethod
    async def presign_upload(
        db: AsyncSession,
        identity: Identity,
        property_id: str,
        file_name: str,
        content_type: str,
        kind: str = "files",
    ) -> Dict[str, Any]:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        prop = await PropertyService.get_property(db, identity, property_id)
        key = StorageService.build_key(_COLLECTION, prop.id, kind, file_name)
        return {
            "upload_url": await StorageService.presign_upload(key, content_type),
            "s3_key": key,
            "file_url": StorageService.object_url(key),
        }
