"""
models/apartment.py
-------------------
Apartment ORM model.

property_id references a Property of the same company. The reference is
validated by the service layer at write time only; there is no foreign key,
so deleting a property leaves its apartments in place.
"""

from typing import Optional

from sqlalchemy import JSON, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from estate_crm.db.base import Base, IdMixin, TimestampMixin


class Apartment(Base, IdMixin, TimestampMixin):
    __tablename__ = "apartments"

    property_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    apartment_number: Mapped[str] = mapped_column(String(50), nullable=False)
    rooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    documents: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Apartment id={self.id} number={self.apartment_number}>"
