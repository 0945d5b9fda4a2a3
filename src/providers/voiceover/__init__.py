from src.providers.voiceover.sqlite_voiceover_provider import SQLiteVoiceoverProvider

__all__ = ["SQLiteVoiceoverProvider"]
