"""
models/user.py
--------------
User ORM model with roles and tenant binding.

Usernames are unique per company only: the (username, company_alias) pair
carries the unique constraint. company_id and company_alias always point at
the same Company and are set once, at creation.

The password_hash column stores bcrypt hashes only. It never leaves the
service layer: response schemas do not declare it.
"""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from estate_crm.core.roles import Role
from estate_crm.db.base import Base, IdMixin, TimestampMixin


class User(Base, IdMixin, TimestampMixin):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", "company_alias", name="uq_users_username_company_alias"),
    )

    username: Mapped[str] = mapped_column(String(150), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    company_alias: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.user.value)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"
