"""
api/routes/apartments.py
------------------------
Apartment endpoints, scoped to the caller's company.

GET    /apartments                          — cursor page; ?propertyId= narrows, ?search= full list
POST   /apartments                          — create (property must belong to the company)
GET    /apartments/{id}                     — read
PATCH  /apartments/{id}                     — partial update
DELETE /apartments/{id}                     — delete
POST   /apartments/{id}/images              — add an image URL
DELETE /apartments/{id}/images?url=...      — remove an image
POST   /apartments/{id}/uploads             — presigned upload URL
POST   /apartments/{id}/documents           — attach an uploaded document and extract data
DELETE /apartments/{id}/documents?s3Key=... — detach and delete a document
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Query, status

from estate_crm.core.config import settings
from estate_crm.dependencies import DbSession, TenantUser
from estate_crm.schemas.apartment import ApartmentCreate, ApartmentRead, DocumentUploaded
from estate_crm.schemas.common import MessageResponse, PageRead, page_of
from estate_crm.schemas.lead import FileReferenceCreate
from estate_crm.schemas.property import ImageAdd, PresignedUpload, UploadRequest
from estate_crm.services.apartment_service import ApartmentService

router = APIRouter(prefix="/apartments", tags=["Apartments"])


@router.get("", response_model=Union[PageRead[ApartmentRead], List[ApartmentRead]])
async def list_apartments(
    identity: TenantUser,
    db: DbSession,
    cursor: Optional[str] = None,
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1),
    property_id: Optional[str] = Query(default=None, alias="propertyId"),
    search: Optional[str] = None,
):
    if search:
        found = await ApartmentService.search_apartments(db, identity, search)
        return [ApartmentRead.model_validate(apartment) for apartment in found]
    if property_id:
        page = await ApartmentService.list_by_property(db, identity, property_id, page_size, cursor)
    else:
        page = await ApartmentService.list_apartments(db, identity, page_size, cursor)
    return page_of(ApartmentRead, page)


@router.post("", response_model=ApartmentRead, status_code=status.HTTP_201_CREATED)
async def create_apartment(
    body: ApartmentCreate, identity: TenantUser, db: DbSession
) -> ApartmentRead:
    return ApartmentRead.model_validate(await ApartmentService.create_apartment(db, identity, body))


@router.get("/{apartment_id}", response_model=ApartmentRead)
async def get_apartment(apartment_id: str, identity: TenantUser, db: DbSession) -> ApartmentRead:
    return ApartmentRead.model_validate(
        await ApartmentService.get_apartment(db, identity, apartment_id)
    )


@router.patch("/{apartment_id}", response_model=ApartmentRead)
async def update_apartment(
    apartment_id: str,
    identity: TenantUser,
    db: DbSession,
    fields: Dict[str, Any] = Body(...),
) -> ApartmentRead:
    apartment = await ApartmentService.update_apartment(db, identity, apartment_id, fields)
    return ApartmentRead.model_validate(apartment)


@router.delete("/{apartment_id}", response_model=MessageResponse)
async def delete_apartment(
    apartment_id: str, identity: TenantUser, db: DbSession
) -> MessageResponse:
    await ApartmentService.delete_apartment(db, identity, apartment_id)
    return MessageResponse(message="Apartment deleted successfully")


# ── Images ────────────────────────────────────────────────────────────────────

@router.post("/{apartment_id}/images", response_model=ApartmentRead)
async def add_apartment_image(
    apartment_id: str, body: ImageAdd, identity: TenantUser, db: DbSession
) -> ApartmentRead:
    apartment = await ApartmentService.add_image(db, identity, apartment_id, body.image_url)
    return ApartmentRead.model_validate(apartment)


@router.delete("/{apartment_id}/images", response_model=ApartmentRead)
async def remove_apartment_image(
    apartment_id: str,
    identity: TenantUser,
    db: DbSession,
    url: str = Query(..., min_length=1),
) -> ApartmentRead:
    apartment = await ApartmentService.remove_image(db, identity, apartment_id, url)
    return ApartmentRead.model_validate(apartment)


# ── Documents ─────────────────────────────────────────────────────────────────

@router.post("/{apartment_id}/uploads", response_model=PresignedUpload)
async def presign_apartment_upload(
    apartment_id: str, body: UploadRequest, identity: TenantUser, db: DbSession
) -> PresignedUpload:
    signed = await ApartmentService.presign_upload(
        db, identity, apartment_id, body.file_name, body.content_type, body.kind
    )
    return PresignedUpload(expires_in=settings.PRESIGNED_URL_TTL_SECONDS, **signed)


@router.post(
    "/{apartment_id}/documents",
    response_model=DocumentUploaded,
    status_code=status.HTTP_201_CREATED,
)
async def add_apartment_document(
    apartment_id: str, body: FileReferenceCreate, identity: TenantUser, db: DbSession
) -> DocumentUploaded:
    result = await ApartmentService.add_document(db, identity, apartment_id, body)
    return DocumentUploaded(
        apartment=ApartmentRead.model_validate(result["apartment"]),
        document=result["document"],
        extracted_data=result["extracted_data"],
    )


@router.delete("/{apartment_id}/documents", response_model=ApartmentRead)
async def remove_apartment_document(
    apartment_id: str,
    identity: TenantUser,
    db: DbSession,
    s3_key: str = Query(..., alias="s3Key", min_length=1),
) -> ApartmentRead:
    apartment = await ApartmentService.remove_document(db, identity, apartment_id, s3_key)
    return ApartmentRead.model_validate(apartment)
