"""User account models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UserRole(str, Enum):
    USER = "user"
    LANDLORD = "landlord"
    ADMIN = "admin"


class User(BaseModel):
    """Account record referenced by bookings and lots."""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole = UserRole.USER
    total_bookings: int = 0
    total_spent: float = 0.0
