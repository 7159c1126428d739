"""
api/routes/leads.py
-------------------
Lead endpoints. Every route depends on get_tenant_user, so the company
guard runs before any lookup.

GET    /leads                                   — cursor page, or ?search= for a full match list
GET    /leads/by-property/{property_id}         — leads interested in a property
POST   /leads                                   — create
GET    /leads/{id}                              — read
PATCH  /leads/{id}                              — partial update
DELETE /leads/{id}                              — delete
PUT    /leads/{id}/status                       — status only
POST   /leads/{id}/properties/{property_id}     — add property interest
DELETE /leads/{id}/properties/{property_id}     — remove property interest
POST   /leads/{id}/history                      — add history entry (newest first)
PATCH  /leads/{id}/history/{entry_id}           — edit history entry
DELETE /leads/{id}/history/{entry_id}           — remove history entry
POST   /leads/{id}/uploads                      — presigned upload URL
POST   /leads/{id}/files                        — attach uploaded file
DELETE /leads/{id}/files/{file_id}              — detach file
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Query, status

from estate_crm.core.config import settings
from estate_crm.dependencies import DbSession, TenantUser
from estate_crm.schemas.common import MessageResponse, PageRead, page_of
from estate_crm.schemas.lead import (
    FileReferenceCreate,
    HistoryEntryCreate,
    LeadCreate,
    LeadRead,
    LeadStatusUpdate,
)
from estate_crm.schemas.property import PresignedUpload, UploadRequest
from estate_crm.services.lead_service import LeadService

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.get("", response_model=Union[PageRead[LeadRead], List[LeadRead]])
async def list_leads(
    identity: TenantUser,
    db: DbSession,
    cursor: Optional[str] = None,
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1),
    search: Optional[str] = None,
):
    if search:
        leads = await LeadService.search_leads(db, identity, search)
        return [LeadRead.model_validate(lead) for lead in leads]
    return page_of(LeadRead, await LeadService.list_leads(db, identity, page_size, cursor))


@router.get("/by-property/{property_id}", response_model=PageRead[LeadRead])
async def list_leads_by_property(
    property_id: str,
    identity: TenantUser,
    db: DbSession,
    cursor: Optional[str] = None,
    page_size: Optional[int] = Query(default=None, alias="pageSize", ge=1),
):
    page = await LeadService.list_by_property(db, identity, property_id, page_size, cursor)
    return page_of(LeadRead, page)


@router.post("", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
async def create_lead(body: LeadCreate, identity: TenantUser, db: DbSession) -> LeadRead:
    return LeadRead.model_validate(await LeadService.create_lead(db, identity, body))


@router.get("/{lead_id}", response_model=LeadRead)
async def get_lead(lead_id: str, identity: TenantUser, db: DbSession) -> LeadRead:
    return LeadRead.model_validate(await LeadService.get_lead(db, identity, lead_id))


@router.patch("/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: str,
    identity: TenantUser,
    db: DbSession,
    fields: Dict[str, Any] = Body(...),
) -> LeadRead:
    return LeadRead.model_validate(await LeadService.update_lead(db, identity, lead_id, fields))


@router.delete("/{lead_id}", response_model=MessageResponse)
async def delete_lead(lead_id: str, identity: TenantUser, db: DbSession) -> MessageResponse:
    await LeadService.delete_lead(db, identity, lead_id)
    return MessageResponse(message="Lead deleted successfully")


@router.put("/{lead_id}/status", response_model=LeadRead)
async def update_lead_status(
    lead_id: str, body: LeadStatusUpdate, identity: TenantUser, db: DbSession
) -> LeadRead:
    lead = await LeadService.update_status(db, identity, lead_id, body.status.value)
    return LeadRead.model_validate(lead)


# ── Property interests ────────────────────────────────────────────────────────

@router.post("/{lead_id}/properties/{property_id}", response_model=LeadRead)
async def add_property_interest(
    lead_id: str, property_id: str, identity: TenantUser, db: DbSession
) -> LeadRead:
    lead = await LeadService.add_property_interest(db, identity, lead_id, property_id)
    return LeadRead.model_validate(lead)


@router.delete("/{lead_id}/properties/{property_id}", response_model=LeadRead)
async def remove_property_interest(
    lead_id: str, property_id: str, identity: TenantUser, db: DbSession
) -> LeadRead:
    lead = await LeadService.remove_property_interest(db, identity, lead_id, property_id)
    return LeadRead.model_validate(lead)


# ── History ───────────────────────────────────────────────────────────────────

@router.post("/{lead_id}/history", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
async def add_history_entry(
    lead_id: str, body: HistoryEntryCreate, identity: TenantUser, db: DbSession
) -> LeadRead:
    lead = await LeadService.add_history_entry(db, identity, lead_id, body)
    return LeadRead.model_validate(lead)


@router.patch("/{lead_id}/history/{entry_id}", response_model=LeadRead)
async def update_history_entry(
    lead_id: str,
    entry_id: str,
    identity: TenantUser,
    db: DbSession,
    changes: Dict[str, Any] = Body(...),
) -> LeadRead:
    lead = await LeadService.update_history_entry(db, identity, lead_id, entry_id, changes)
    return LeadRead.model_validate(lead)


@router.delete("/{lead_id}/history/{entry_id}", response_model=LeadRead)
async def delete_history_entry(
    lead_id: str, entry_id: str, identity: TenantUser, db: DbSession
) -> LeadRead:
    lead = await LeadService.delete_history_entry(db, identity, lead_id, entry_id)
    return LeadRead.model_validate(lead)


# ── Files ─────────────────────────────────────────────────────────────────────

@router.post("/{lead_id}/uploads", response_model=PresignedUpload)
async def presign_lead_upload(
    lead_id: str, body: UploadRequest, identity: TenantUser, db: DbSession
) -> PresignedUpload:
    signed = await LeadService.presign_upload(
        db, identity, lead_id, body.file_name, body.content_type, body.kind
    )
    return PresignedUpload(expires_in=settings.PRESIGNED_URL_TTL_SECONDS, **signed)


@router.post("/{lead_id}/files", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
async def add_lead_file(
    lead_id: str, body: FileReferenceCreate, identity: TenantUser, db: DbSession
) -> LeadRead:
    return LeadRead.model_validate(await LeadService.add_file(db, identity, lead_id, body))


@router.delete("/{lead_id}/files/{file_id}", response_model=LeadRead)
async def delete_lead_file(
    lead_id: str, file_id: str, identity: TenantUser, db: DbSession
) -> LeadRead:
    return LeadRead.model_validate(await LeadService.delete_file(db, identity, lead_id, file_id))
