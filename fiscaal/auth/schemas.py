"""
schemas.py: Auth data contracts.

SessionUser is the identity resolved from the session cookie and passed
explicitly into every handler that needs it.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, TypeAdapter, ValidationError


class SessionUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str


_login_email = TypeAdapter(EmailStr)


def parse_login_email(raw: str) -> Optional[str]:
    """Stripped, lower-cased address, or None when raw is not a valid e-mail address."""
    try:
        email = _login_email.validate_python(raw.strip())
    except ValidationError:
        return None
    return email.lower()


__all__ = ["SessionUser", "parse_login_email"]
