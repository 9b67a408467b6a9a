"""계정 Core"""

from .enums import AccountError
from .models import AccountResult, User, UserProfile

__all__ = [
    "AccountError",
    "AccountResult",
    "User",
    "UserProfile",
]
