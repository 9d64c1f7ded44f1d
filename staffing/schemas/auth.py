"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel

from staffing.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: str  # username
    role: str


class UserSession(BaseModel):
    """
    Principal for authenticated requests.

    Returned by the get_current_session dependency.
    """
    username: str
    role: Role  # Validated enum

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
