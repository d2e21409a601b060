from fastapi import APIRouter, Depends, Request, Response
from app.config import settings
from app.core.dependencies import get_auth_service, get_current_user
from app.core.rate_limit import limiter
from app.modules.auth.schemas import AuthResponse, LoginRequest, RegisterRequest, User, UserEnvelope
from app.modules.auth.service import AuthService
from app.modules.auth.session import clear_session_cookie, mint_token, set_session_cookie

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse)
@router.post("/signup", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    response: Response,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user and start a session"""
    user = service.register(register_data)
    set_session_cookie(response, mint_token(user.id))
    return AuthResponse(user=user, message="Account created successfully")


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and start a session"""
    user = service.login(login_data)
    set_session_cookie(response, mint_token(user.id))
    return AuthResponse(user=user, message="Login successful")


@router.post("/logout", status_code=200)
async def logout(response: Response):
    """Drop the session cookie; tokens are stateless so nothing is revoked server-side"""
    clear_session_cookie(response)
    return {"message": "Logged out successfully"}


@router.get("/check", response_model=UserEnvelope)
@router.get("/me", response_model=UserEnvelope)
async def check(current_user: User = Depends(get_current_user)):
    """Get the user behind the current session"""
    return UserEnvelope(user=current_user)
