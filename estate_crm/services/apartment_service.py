"""
services/apartment_service.py
-----------------------------
Apartment operations, all scoped to the caller's company.

An apartment must point at an existing property of the same company. This
is checked when the apartment is created and whenever a patch moves it to a
different property; there is no foreign key behind it.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.errors import ExternalServiceError, NotFound, Page
from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Capability
from estate_crm.core.tenancy import Identity, ensure_capability, ensure_tenant_access
from estate_crm.db.base import utcnow
from estate_crm.models.apartment import Apartment
from estate_crm.models.property import Property
from estate_crm.repositories.apartment_repo import ApartmentRepository
from estate_crm.repositories.base import field_name
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.schemas.apartment import ApartmentCreate
from estate_crm.schemas.lead import FileReferenceCreate
from estate_crm.services.extraction_service import (
    EXTRACTION_FAILED_NOTE,
    ExtractionService,
    empty_apartment_data,
)
from estate_crm.services.storage_service import StorageService

logger = get_logger(__name__)

_WRITE_DENIED = "Insufficient permissions to manage apartments"
_COLLECTION = "apartments"


class ApartmentService:

    @staticmethod
    async def _require_property(db: AsyncSession, identity: Identity, property_id: str) -> Property:
        prop = (await PropertyRepository(db).get_by_id(property_id)).unwrap()
        return ensure_tenant_access(identity, prop, "Property", "Property access denied")

    # ── Reads ────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_apartments(
        db: AsyncSession,
        identity: Identity,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Page[Apartment]:
        return (
            await ApartmentRepository(db).get_by_tenant(identity.company_id, page_size, cursor)
        ).unwrap()

    @staticmethod
    async def list_by_property(
        db: AsyncSession,
        identity: Identity,
        property_id: str,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Page[Apartment]:
        await ApartmentService._require_property(db, identity, property_id)
        return (
            await ApartmentRepository(db).get_by_foreign_key(
                "property", property_id, page_size, cursor, company_id=identity.company_id
            )
        ).unwrap()

    @staticmethod
    async def search_apartments(db: AsyncSession, identity: Identity, term: str) -> List[Apartment]:
        return (await ApartmentRepository(db).search(identity.company_id, term)).unwrap()

    @staticmethod
    async def get_apartment(db: AsyncSession, identity: Identity, apartment_id: str) -> Apartment:
        apartment = (await ApartmentRepository(db).get_by_id(apartment_id)).unwrap()
        return ensure_tenant_access(identity, apartment, "Apartment")

    # ── Writes ───────────────────────────────────────────────────────────────

    @staticmethod
    async def create_apartment(
        db: AsyncSession, identity: Identity, data: ApartmentCreate
    ) -> Apartment:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        await ApartmentService._require_property(db, identity, data.property_id)
        values = data.model_dump()
        values["company_id"] = identity.company_id
        apartment = (await ApartmentRepository(db).create(values)).unwrap()
        logger.info("Apartment created", apartment_id=apartment.id, property_id=apartment.property_id)
        return apartment

    @staticmethod
    async def update_apartment(
        db: AsyncSession, identity: Identity, apartment_id: str, fields: Dict[str, Any]
    ) -> Apartment:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        new_property = next(
            (value for key, value in fields.items() if field_name(key) == "property_id"), None
        )
        if new_property is not None and new_property != apartment.property_id:
            await ApartmentService._require_property(db, identity, new_property)
        return (await ApartmentRepository(db).patch(apartment.id, fields)).unwrap()

    @staticmethod
    async def delete_apartment(db: AsyncSession, identity: Identity, apartment_id: str) -> None:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        (await ApartmentRepository(db).delete(apartment.id)).unwrap()

    # ── Images ───────────────────────────────────────────────────────────────

    @staticmethod
    async def add_image(
        db: AsyncSession, identity: Identity, apartment_id: str, image_url: str
    ) -> Apartment:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        StorageService.require_owned_url(_COLLECTION, apartment.id, image_url)
        if image_url in apartment.images:
            return apartment
        return (
            await ApartmentRepository(db).patch(
                apartment.id, {"images": apartment.images + [image_url]}
            )
        ).unwrap()

    @staticmethod
    async def remove_image(
        db: AsyncSession, identity: Identity, apartment_id: str, image_url: str
    ) -> Apartment:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        if image_url not in apartment.images:
            raise NotFound("Image not found")
        apartment = (
            await ApartmentRepository(db).patch(
                apartment.id, {"images": [url for url in apartment.images if url != image_url]}
            )
        ).unwrap()
        key = StorageService.key_from_url(image_url)
        if StorageService.owns_key(_COLLECTION, apartment.id, key):
            await StorageService.delete_quietly(key)
        return apartment

    # ── Documents ────────────────────────────────────────────────────────────

    @staticmethod
    async def add_document(
        db: AsyncSession, identity: Identity, apartment_id: str, data: FileReferenceCreate
    ) -> Dict[str, Any]:
        """
        Attach an uploaded document and run text extraction over it.

        Extraction problems never fail the upload: the document is kept and
        its extractedData carries a note saying extraction failed.
        """
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        StorageService.require_owned_key(_COLLECTION, apartment.id, data.s3_key)

        try:
            extracted = (await ExtractionService.extract(data.s3_key))["apartmentData"]
        except ExternalServiceError:
            extracted = empty_apartment_data(EXTRACTION_FAILED_NOTE)

        document = {
            "url": StorageService.object_url(data.s3_key),
            "name": data.name,
            "type": data.type,
            "size": data.size,
            "s3Key": data.s3_key,
            "uploadedAt": utcnow().isoformat(),
            "extractedData": extracted,
        }
        apartment = (
            await ApartmentRepository(db).patch(
                apartment.id, {"documents": apartment.documents + [document]}
            )
        ).unwrap()
        return {"apartment": apartment, "document": document, "extracted_data": extracted}

    @staticmethod
    async def remove_document(
        db: AsyncSession, identity: Identity, apartment_id: str, s3_key: str
    ) -> Apartment:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        remaining = [doc for doc in apartment.documents if doc.get("s3Key") != s3_key]
        if len(remaining) == len(apartment.documents):
            raise NotFound("Document not found")
        apartment = (
            await ApartmentRepository(db).patch(apartment.id, {"documents": remaining})
        ).unwrap()
        if StorageService.owns_key(_COLLECTION, apartment.id, s3_key):
            await StorageService.delete_quietly(s3_key)
        return apartment

    @staticmethod
    async def presign_upload(
        db: AsyncSession,
        identity: Identity,
        apartment_id: str,
        file_name: str,
        content_type: str,
        kind: str = "documents",
    ) -> Dict[str, Any]:
        ensure_capability(identity, Capability.manage_properties, _WRITE_DENIED)
        apartment = await ApartmentService.get_apartment(db, identity, apartment_id)
        key = StorageService.build_key(_COLLECTION, apartment.id, kind, file_name)
        return {
            "upload_url": await StorageService.presign_upload(key, content_type),
            "s3_key": key,
            "file_url": StorageService.object_url(key),
        }
