"""
Core dependencies for route protection
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.database.table_store import TableStoreClient, get_table_store
from app.modules.auth.schemas import User
from app.modules.auth.service import AuthService
from app.modules.auth.session import verify_token
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(store: TableStoreClient = Depends(get_table_store)) -> AuthService:
    return AuthService(store)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Session token from the auth cookie, falling back to an Authorization: Bearer header"""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    if credentials:
        return credentials.credentials
    return None


def get_current_user_id(token: Optional[str] = Depends(get_session_token)) -> str:
    """Extract current user id from the session token"""
    user_id = verify_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session"
        )
    return user_id


def get_current_user(
    user_id: str = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """Load the authenticated user; a valid token for a deleted user is a 404"""
    user = auth_service.get_by_id(user_id)
    if user is None:
        logger.warning(f"Session for unknown user {user_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
