"""
api/routes/properties.py
------------------------
Property endpoints, scoped to the caller's company.

GET    /properties                         — cursor page; ?status= or ?search= return full lists
GET    /properties/map/bounds              — properties inside a lat/lng box
POST   /properties                         — create (manage_properties)
GET    /properties/{id}                    — read
PATCH  /properties/{id}                    — partial update
DELETE /properties/{id}                    — delete, with object-store cleanup
POST   /properties/{id}/images             — add an image URL
DELETE /properties/{id}/images?url=...     — remove an image
POST   /properties/{id}/uploads            — presigned upload URL
POST   /properties/{id}/files              — attach an uploaded file
GET    /properties/{id}/files/{file_id}/download — presigned download URL
DELETE /properties/{id}/files/{file_id}    — detach and delete a file
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Query, status

from estate_crm.core.config import settings
from estate_crm.dependencies import DbSession, TenantUser
from estate_crm.models.property import PropertyStatus
from estate_crm.schemas.common import MessageResponse, PageRead, page_of
from estate_crm.schemas.lead import FileReferenceCreate
from estate_crm.schemas.property import (
    ImageAdd,
    MapBounds,
    PresignedUpload,
    PropertyCreate,
    PropertyRead,
    UploadRequest,
)
from estate_crm.services.property_service import PropertyService

router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get("", response_model=Union[PageRead[PropertyRead], List[PropertyRead]])
async def list_properties(
    identity: TenantUser,
    db: DbSession,
    cursor: Optional[str] = None,
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1),
    status_filter: Optional[PropertyStatus] = Query(default=None, alias="status"),
    search: Optional[str] = None,
):
    if search:
        found = await PropertyService.search_properties(db, identity, search)
        return [PropertyRead.model_validate(prop) for prop in found]
    if status_filter is not None:
        found = await PropertyService.list_by_status(db, identity, status_filter.value)
        return [PropertyRead.model_validate(prop) for prop in found]
    page = await PropertyService.list_properties(db, identity, page_size, cursor)
    return page_of(PropertyRead, page)


@router.get("/map/bounds", response_model=List[PropertyRead])
async def properties_in_bounds(
    identity: TenantUser,
    db: DbSession,
    south: float = Query(..., ge=-90, le=90),
    west: float = Query(..., ge=-180, le=180),
    north: float = Query(..., ge=-90, le=90),
    east: float = Query(..., ge=-180, le=180),
) -> List[PropertyRead]:
    bounds = MapBounds(south=south, west=west, north=north, east=east)
    found = await PropertyService.within_bounds(db, identity, bounds)
    return [PropertyRead.model_validate(prop) for prop in found]


@router.post("", response_model=PropertyRead, status_code=status.HTTP_201_CREATED)
async def create_property(body: PropertyCreate, identity: TenantUser, db: DbSession) -> PropertyRead:
    return PropertyRead.model_validate(await PropertyService.create_property(db, identity, body))


@router.get("/{property_id}", response_model=PropertyRead)
async def get_property(property_id: str, identity: TenantUser, db: DbSession) -> PropertyRead:
    return PropertyRead.model_validate(await PropertyService.get_property(db, identity, property_id))


@router.patch("/{property_id}", response_model=PropertyRead)
async def update_property(
    property_id: str,
    identity: TenantUser,
    db: DbSession,
    fields: Dict[str, Any] = Body(...),
) -> PropertyRead:
    prop = await PropertyService.update_property(db, identity, property_id, fields)
    return PropertyRead.model_validate(prop)


@router.delete("/{property_id}", response_model=MessageResponse)
async def delete_property(property_id: str, identity: TenantUser, db: DbSession) -> MessageResponse:
    await PropertyService.delete_property(db, identity, property_id)
    return MessageResponse(message="Property deleted successfully")


# ── Images ────────────────────────────────────────────────────────────────────

@router.post("/{property_id}/images", response_model=PropertyRead)
async def add_property_image(
    property_id: str, body: ImageAdd, identity: TenantUser, db: DbSession
) -> PropertyRead:
    prop = await PropertyService.add_image(db, identity, property_id, body.image_url)
    return PropertyRead.model_validate(prop)


@router.delete("/{property_id}/images", response_model=PropertyRead)
async def remove_property_image(
    property_id: str,
    identity: TenantUser,
    db: DbSession,
    url: str = Query(..., min_length=1),
) -> PropertyRead:
    prop = await PropertyService.remove_image(db, identity, property_id, url)
    return PropertyRead.model_validate(prop)


# ── Files ─────────────────────────────────────────────────────────────────────

@router.post("/{property_id}/uploads", response_model=PresignedUpload)
async def presign_property_upload(
    property_id: str, body: UploadRequest, identity: TenantUser, db: DbSession
) -> PresignedUpload:
    signed = await PropertyService.presign_upload(
        db, identity, property_id, body.file_name, body.content_type, body.kind
    )
    return PresignedUpload(expires_in=settings.PRESIGNED_URL_TTL_SECONDS, **signed)


@router.post(
    "/{property_id}/files",
    response_model=Dict[str, Any],
    status_code=status.HTTP_201_CREATED,
)
async def add_property_file(
    property_id: str, body: FileReferenceCreate, identity: TenantUser, db: DbSession
) -> Dict[str, Any]:
    return await PropertyService.add_file(db, identity, property_id, body)


@router.get("/{property_id}/files/{file_id}/download")
async def download_property_file(
    property_id: str, file_id: str, identity: TenantUser, db: DbSession
) -> Dict[str, Any]:
    url = await PropertyService.file_download_url(db, identity, property_id, file_id)
    return {"url": url, "expiresIn": settings.PRESIGNED_URL_TTL_SECONDS}


@router.delete("/{property_id}/files/{file_id}", response_model=PropertyRead)
async def delete_property_file(
    property_id: str, file_id: str, identity: TenantUser, db: DbSession
) -> PropertyRead:
    prop = await PropertyService.delete_file(db, identity, property_id, file_id)
    return PropertyRead.model_validate(prop)
