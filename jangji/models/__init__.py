from jangji.models.user import User
from jangji.models.user_progress import UserProgress


__all__ = ["User", "UserProgress"]
