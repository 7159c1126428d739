"""
dependencies.py
---------------
FastAPI dependency injection functions for authentication and tenancy.

Flow:
  1. HTTPBearer extracts the Bearer token from the Authorization header
     (auto_error=False, so a missing header reaches our own 401 message).
  2. AuthService.resolve_identity validates the JWT, takes role and names
     from its claims, and looks the user row up so deleted users are
     rejected and company_id comes from the DB.
  3. get_tenant_user layers the company guard on top; every entity router
     depends on it before any lookup happens.
  4. get_optional_user yields None instead of failing, for endpoints that
     answer anonymous callers differently.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.logging import bind_request_identity
from estate_crm.core.tenancy import Identity, require_company_access
from estate_crm.db.session import get_db
from estate_crm.services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials is not None else None


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Identity:
    identity = await AuthService.resolve_identity(db, _token(credentials))
    bind_request_identity(identity.user_id, identity.company_id)
    return identity


async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[Identity]:
    identity = await AuthService.resolve_optional_identity(db, _token(credentials))
    if identity is not None:
        bind_request_identity(identity.user_id, identity.company_id)
    return identity


async def get_tenant_user(
    identity: Annotated[Identity, Depends(get_current_user)],
) -> Identity:
    return require_company_access(identity)


CurrentUser = Annotated[Identity, Depends(get_current_user)]
OptionalUser = Annotated[Optional[Identity], Depends(get_optional_user)]
TenantUser = Annotated[Identity, Depends(get_tenant_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
