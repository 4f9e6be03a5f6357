"""
Mock user directory.

In production, this would query the users collection to resolve booking
owners, lot landlords and admins.
"""

import logging
from typing import Any, Optional

from parkspot.schemas.normalize import normalize_user
from parkspot.schemas.user_schema import User, UserRole

logger = logging.getLogger(__name__)

_SEED_USERS: list[dict[str, Any]] = [
    {
        "_id": "user-001",
        "name": "Aarav Sharma",
        "email": "aarav.sharma@email.com",
        "phone": "+919876543210",
    },
    {
        "_id": "user-002",
        "name": "Priya Nair",
        "email": "priya.nair@email.com",
        "phone": "+919812345678",
    },
    {
        "_id": "user-landlord-1",
        "name": "Rohan Mehta",
        "email": "rohan@centralparking.in",
        "role": "landlord",
    },
    {
        "_id": "user-landlord-2",
        "name": "Kavya Iyer",
        "email": "kavya@metroparking.in",
        "role": "landlord",
    },
    {
        "_id": "user-admin",
        "name": "Site Admin",
        "email": "admin@parkspot.in",
        "role": "admin",
    },
]

_users: dict[str, User] = {}


def get_user(user_id: str) -> Optional[User]:
    """Look up a user by id. Returns None if not found."""
    return _users.get(user_id)


def is_admin(user_id: str) -> bool:
    user = _users.get(user_id)
    return user is not None and user.role == UserRole.ADMIN


def record_booking_spend(user_id: str, amount: float) -> Optional[User]:
    """Bump a user's booking count and total spend after a booking is created."""
    user = _users.get(user_id)
    if user is None:
        logger.warning("Spend not recorded, unknown user: %s", user_id)
        return None
    user.total_bookings += 1
    user.total_spent = round(user.total_spent + amount, 2)
    return user


def reset() -> None:
    """Restore the seeded users. Used by test fixtures for isolation."""
    _users.clear()
    for payload in _SEED_USERS:
        user = normalize_user(payload)
        _users[user.id] = user


reset()
