"""SQLModel models package."""

from .user import User
from .user_session import UserSession

__all__ = ["User", "UserSession"]
