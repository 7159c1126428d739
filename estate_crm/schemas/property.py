"""
schemas/property.py
-------------------
Property request/response models, map bounds and presigned uploads.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from estate_crm.models.property import PropertyStatus
from estate_crm.schemas.common import CamelModel


class Coordinates(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class PropertyCreate(CamelModel):
    name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)
    status: PropertyStatus = PropertyStatus.under_construction
    images: List[str] = Field(default_factory=list)
    main_image: Optional[str] = Field(default=None, max_length=1024)
    description: str = ""
    coordinates: Optional[Coordinates] = None


class PropertyRead(CamelModel):
    id: str
    name: str
    address: Optional[str] = None
    status: str
    company_id: str
    images: List[str]
    main_image: Optional[str] = None
    description: str
    coordinates: Optional[Dict[str, float]] = None
    files: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class MapBounds(CamelModel):
    south: float = Field(..., ge=-90, le=90)
    west: float = Field(..., ge=-180, le=180)
    north: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)


class ImageAdd(CamelModel):
    image_url: str = Field(..., min_length=1, max_length=1024)


class UploadRequest(CamelModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(default="application/octet-stream", max_length=100)
    kind: Literal["images", "files", "documents"] = "files"


class PresignedUpload(CamelModel):
    upload_url: str
    s3_key: str
    file_url: str
    expires_in: int


class PropertySearchResult(CamelModel):
    query: str
    properties: List[PropertyRead]
    total: int
