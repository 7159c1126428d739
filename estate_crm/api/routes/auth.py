"""
api/routes/auth.py
------------------
Authentication endpoints.

POST /auth/login            — Exchange username + company alias + password for a JWT.
GET  /auth/me               — Return the authenticated user's profile.
POST /auth/refresh          — Re-issue a token for the current session.
PUT  /auth/change-password  — Change the caller's own password.
"""

from fastapi import APIRouter

from estate_crm.dependencies import CurrentUser, DbSession
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.common import MessageResponse
from estate_crm.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    TokenResponse,
    UserRead,
)
from estate_crm.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse, summary="Login and receive a JWT")
async def login(body: LoginRequest, db: DbSession) -> TokenResponse:
    user = await AuthService.authenticate(db, body.username, body.company_alias, body.password)
    token, expires_in = AuthService.issue_token(user)
    return TokenResponse(
        access_token=token,
        expires_in=expires_in,
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=UserRead, summary="Get the authenticated user")
async def get_me(identity: CurrentUser, db: DbSession) -> UserRead:
    user = (await UserRepository(db).get_by_id(identity.user_id)).unwrap()
    return UserRead.model_validate(user)


@router.post("/refresh", response_model=TokenResponse, summary="Refresh the access token")
async def refresh(identity: CurrentUser, db: DbSession) -> TokenResponse:
    user = (await UserRepository(db).get_by_id(identity.user_id)).unwrap()
    token, expires_in = AuthService.refresh_token(identity)
    return TokenResponse(
        access_token=token,
        expires_in=expires_in,
        user=UserRead.model_validate(user),
    )


@router.put("/change-password", response_model=MessageResponse, summary="Change own password")
async def change_password(
    body: ChangePasswordRequest, identity: CurrentUser, db: DbSession
) -> MessageResponse:
    await AuthService.change_password(db, identity, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
