"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Principal roles.

    - ADMIN: finalizes staffing, edits event metadata, manages settings
    - COUNSELLOR: submits and edits own events, views availability
    """

    ADMIN = "admin"
    COUNSELLOR = "counsellor"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
