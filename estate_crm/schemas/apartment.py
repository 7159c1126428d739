"""
schemas/apartment.py
--------------------
Apartment request/response models and uploaded documents.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from estate_crm.schemas.common import CamelModel


class ApartmentCreate(CamelModel):
    property_id: str = Field(..., min_length=1, max_length=36)
    apartment_number: str = Field(..., min_length=1, max_length=50)
    rooms: Optional[int] = Field(default=None, ge=0)
    area: Optional[float] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    images: List[str] = Field(default_factory=list)


class ApartmentRead(CamelModel):
    id: str
    property_id: str
    apartment_number: str
    rooms: Optional[int] = None
    area: Optional[float] = None
    price: Optional[float] = None
    images: List[str]
    documents: List[Dict[str, Any]]
    company_id: str
    created_at: datetime
    updated_at: datetime


class DocumentUploaded(CamelModel):
    apartment: ApartmentRead
    document: Dict[str, Any]
    extracted_data: Dict[str, Any]
