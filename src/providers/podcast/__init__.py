from src.providers.podcast.sqlite_podcast_provider import SQLitePodcastProvider

__all__ = ["SQLitePodcastProvider"]
