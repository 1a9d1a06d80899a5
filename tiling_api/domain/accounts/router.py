"""Auth router - Google sign-in and current user"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import ApiResponse, UserInfo
from .schemas import AuthResponse, GoogleSignInRequest
from .service import AccountService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


@router.post("/google-signin", response_model=ApiResponse[AuthResponse])
async def google_sign_in(
    data: GoogleSignInRequest,
    service: AccountService = Depends(get_account_service),
):
    token, user = await service.sign_in_with_google(data.idToken)
    return ApiResponse(
        data=AuthResponse(token=token, user=UserInfo.from_user(user)),
        message="Authentication successful",
    )


@router.get("/me", response_model=ApiResponse[UserInfo])
async def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse(data=UserInfo.from_user(current_user))
