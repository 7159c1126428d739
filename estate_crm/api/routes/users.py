"""
api/routes/users.py
-------------------
User management within the caller's company.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, status

from estate_crm.dependencies import DbSession, TenantUser
from estate_crm.schemas.common import MessageResponse
from estate_crm.schemas.user import PasswordReset, UserCreate, UserRead
from estate_crm.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserRead], summary="List users of the company")
async def list_users(identity: TenantUser, db: DbSession) -> List[UserRead]:
    users = await UserService.list_users(db, identity)
    return [UserRead.model_validate(user) for user in users]


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user in the company",
)
async def create_user(body: UserCreate, identity: TenantUser, db: DbSession) -> UserRead:
    user = await UserService.create_user(db, identity, body)
    return UserRead.model_validate(user)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: str, identity: TenantUser, db: DbSession) -> UserRead:
    return UserRead.model_validate(await UserService.get_user(db, identity, user_id))


@router.patch("/{user_id}", response_model=UserRead, summary="Partially update a user")
async def update_user(
    user_id: str,
    identity: TenantUser,
    db: DbSession,
    fields: Dict[str, Any] = Body(...),
) -> UserRead:
    return UserRead.model_validate(await UserService.update_user(db, identity, user_id, fields))


@router.put("/{user_id}/password", response_model=MessageResponse, summary="Reset a user's password")
async def reset_password(
    user_id: str, body: PasswordReset, identity: TenantUser, db: DbSession
) -> MessageResponse:
    await UserService.reset_password(db, identity, user_id, body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, identity: TenantUser, db: DbSession) -> MessageResponse:
    await UserService.delete_user(db, identity, user_id)
    return MessageResponse(message="User deleted successfully")
