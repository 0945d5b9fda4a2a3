from src.providers.infographic.sqlite_infographic_provider import SQLiteInfographicProvider

__all__ = ["SQLiteInfographicProvider"]
