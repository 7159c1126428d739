"""
models/company.py
-----------------
Company (tenant) ORM model.

A company is the unit of data isolation. Its alias is the human-readable
tenant key users type at login; it is stored lowercased and trimmed and is
globally unique.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from estate_crm.db.base import Base, IdMixin, TimestampMixin


def normalize_alias(alias: str | None) -> str | None:
    return alias.strip().lower() if alias is not None else None


class Company(Base, IdMixin, TimestampMixin):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    alias: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Company id={self.id} alias={self.alias}>"
