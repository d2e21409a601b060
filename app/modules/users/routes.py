from fastapi import APIRouter, Depends
from app.core.dependencies import get_auth_service, get_current_user, get_current_user_id
from app.modules.auth.schemas import User
from app.modules.auth.service import AuthService
from app.modules.users.schemas import UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=User)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile"""
    return current_user


@router.patch("/me", response_model=User)
async def update_me(
    user_data: UserUpdate,
    user_id: str = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
):
    """Update the authenticated user's profile"""
    return service.update_profile(user_id, user_data)
