"""
models/lead.py
--------------
Lead ORM model.

properties_of_interest is an ordered, duplicate-free set of Property ids.
It is stored in the lead_property_interests association table so that
"leads interested in property X" is an indexed query rather than a scan.
history and files are small embedded JSON documents owned by the lead.
"""

from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import JSON, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from estate_crm.db.base import Base, IdMixin, TimestampMixin


class LeadStatus(str, PyEnum):
    new = "New"
    attempted = "Attempted"
    connected = "Connected"
    progress = "Progress"
    potential = "Potential"
    customer = "Customer"


class LeadPropertyInterest(Base):
    __tablename__ = "lead_property_interests"
    __table_args__ = (
        UniqueConstraint("lead_id", "property_id", name="uq_lead_property_interest"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lead_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    property_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lead: Mapped["Lead"] = relationship("Lead", back_populates="interests")


class Lead(Base, IdMixin, TimestampMixin):
    __tablename__ = "leads"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LeadStatus.new.value)

    # Current pick shown in the lead drawer, denormalised from Property/Apartment.
    interest: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    property_id: Mapped[str] = mapped_column(String(36), nullable=False, default="")
    property_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    property_address: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    apartment: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    apartment_id: Mapped[str] = mapped_column(String(36), nullable=False, default="")
    apartment_rooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    apartment_area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    apartment_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    files: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    interests: Mapped[List[LeadPropertyInterest]] = relationship(
        LeadPropertyInterest,
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by=LeadPropertyInterest.position,
        lazy="selectin",
    )

    @property
    def properties_of_interest(self) -> List[str]:
        return [interest.property_id for interest in self.interests]

    def set_properties_of_interest(self, property_ids: List[str]) -> None:
        """
        Replace the interest set, dropping duplicates and keeping first-seen
        order. Rows for ids that stay are reused so that the unique
        (lead_id, property_id) constraint is never hit mid-flush.
        """
        existing = {interest.property_id: interest for interest in self.interests}
        ordered: List[LeadPropertyInterest] = []
        seen = set()
        for property_id in property_ids:
            if not property_id or property_id in seen:
                continue
            seen.add(property_id)
            row = existing.get(property_id) or LeadPropertyInterest(property_id=property_id)
            row.position = len(ordered)
            ordered.append(row)
        self.interests = ordered

    def __repr__(self) -> str:
        return f"<Lead id={self.id} company_id={self.company_id} status={self.status}>"
