from pydantic import BaseModel, Field
from typing import Optional

from app.modules.auth.schemas import EmailAddress


class UserUpdate(BaseModel):
    """Partial profile update; only fields present in the request are written."""
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
    email: Optional[EmailAddress] = None
    password: Optional[str] = Field(default=None, min_length=1, max_length=128)
