from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, AliasChoices, BaseModel, Field
from typing import Annotated, Optional
from datetime import datetime


def check_email_format(value: str) -> str:
    """Reject malformed addresses but keep the caller's spelling; emails are case-sensitive as stored."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}") from e
    return value


EmailAddress = Annotated[str, Field(min_length=3, max_length=320), AfterValidator(check_email_format)]


class LoginRequest(BaseModel):
    # Not format-checked: any unknown or malformed email is just invalid credentials
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    email: EmailAddress
    password: str = Field(..., min_length=1, max_length=128)
    full_name: Optional[str] = Field(
        default=None,
        max_length=200,
        validation_alias=AliasChoices("full_name", "display_name", "displayName"),
    )


class User(BaseModel):
    """Sanitized user: the shape every caller outside AuthService sees."""
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: User
    message: str


class UserEnvelope(BaseModel):
    user: User
