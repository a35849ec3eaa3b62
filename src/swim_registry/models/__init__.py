"""Database models for Swim Registry"""

from swim_registry.models.user import User

__all__ = [
    "User",
]
