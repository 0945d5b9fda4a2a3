from src.providers.user.sqlite_user_provider import SQLiteUserProvider

__all__ = ["SQLiteUserProvider"]
