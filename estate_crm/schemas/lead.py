"""
schemas/lead.py
---------------
Lead request/response models plus the embedded history and file entries.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from estate_crm.models.lead import LeadStatus
from estate_crm.schemas.common import CamelModel


class LeadCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=320)
    notes: str = ""
    status: LeadStatus = LeadStatus.new
    interest: str = ""
    property_id: str = ""
    property_name: str = ""
    property_address: str = ""
    apartment: str = ""
    apartment_id: str = ""
    apartment_rooms: Optional[int] = None
    apartment_area: Optional[float] = None
    apartment_price: Optional[float] = None
    properties_of_interest: List[str] = Field(default_factory=list)


class LeadRead(CamelModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    company_id: str
    notes: str
    status: str
    interest: str
    property_id: str
    property_name: str
    property_address: str
    apartment: str
    apartment_id: str
    apartment_rooms: Optional[int] = None
    apartment_area: Optional[float] = None
    apartment_price: Optional[float] = None
    properties_of_interest: List[str]
    history: List[Dict[str, Any]]
    files: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class LeadStatusUpdate(CamelModel):
    status: LeadStatus


class HistoryEntryCreate(CamelModel):
    type: str = Field(..., min_length=1, max_length=50, examples=["call", "meeting"])
    date: str = Field(..., examples=["2024-05-14"])
    time: Optional[str] = Field(default=None, examples=["14:30"])
    notes: str = ""


class FileReferenceCreate(CamelModel):
    """Metadata of an object already uploaded through a presigned URL."""
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(default="application/octet-stream", max_length=100)
    size: int = Field(default=0, ge=0)
    s3_key: str = Field(..., min_length=1, max_length=1024)
