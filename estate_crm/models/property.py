"""
models/property.py
------------------
Property (building / development) ORM model.

images holds object-store URLs for the gallery; files holds file reference
documents {id, name, type, size, url, s3Key, createdAt}.
"""

from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from estate_crm.db.base import Base, IdMixin, TimestampMixin

UNNAMED_PROPERTY = "Proprietate fără nume"


class PropertyStatus(str, PyEnum):
    finished = "finalizat"
    under_construction = "in-constructie"


class Property(Base, IdMixin, TimestampMixin):
    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(255), nullable=False, default=UNNAMED_PROPERTY)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PropertyStatus.under_construction.value
    )
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
    )
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    main_image: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    coordinates: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    files: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Property id={self.id} name={self.name}>"
