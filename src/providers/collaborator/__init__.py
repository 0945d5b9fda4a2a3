from src.providers.collaborator.sqlite_collaborator_provider import SQLiteCollaboratorProvider

__all__ = ["SQLiteCollaboratorProvider"]
