from src.providers.job.sqlite_job_provider import SQLiteJobProvider

__all__ = ["SQLiteJobProvider"]
