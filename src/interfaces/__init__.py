"""Public interface definitions for every external service and store.

Every external API, blob store and database table in Content Studio is
accessed through the abstract base classes in this package.  Concrete
adapters implement them and are injected at startup in ``src/main.py``, so
services never import an SDK directly and unit tests can pass mocks.

CONCRETE PROVIDER MAP:
    Interface               ->  Concrete implementations (in src/providers/)
    ------------------------------------------------------------------------
    IStorageProvider        ->  FilesystemStorageProvider, S3StorageProvider,
                                DatabaseStorageProvider, MemoryStorageProvider
    ILLMProvider            ->  OpenAILLMProvider, AnthropicLLMProvider
    ITTSProvider            ->  OpenAITTSProvider
    IImageGenProvider       ->  OpenAIImageProvider
    IDeepResearchProvider   ->  OpenAIDeepResearchProvider
    IArticleProvider        ->  WebScraperProvider
    ICacheProvider          ->  MemoryCacheProvider
    IEventAdapter           ->  MemoryEventAdapter, RedisEventAdapter
    IUserProvider           ->  SQLiteUserProvider
    IDocumentProvider       ->  SQLiteDocumentProvider
    IPodcastProvider        ->  SQLitePodcastProvider
    ICollaboratorProvider   ->  SQLiteCollaboratorProvider
    IVoiceoverProvider      ->  SQLiteVoiceoverProvider
    IInfographicProvider    ->  SQLiteInfographicProvider
    IJobProvider            ->  SQLiteJobProvider
"""

from src.interfaces.article_provider import ArticleContent, IArticleProvider
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.collaborator_provider import ICollaboratorProvider
from src.interfaces.document_provider import IDocumentProvider
from src.interfaces.event_adapter import IEventAdapter
from src.interfaces.image_provider import GeneratedImage, IImageGenProvider, ReferenceImage
from src.interfaces.infographic_provider import IInfographicProvider
from src.interfaces.job_provider import IJobProvider
from src.interfaces.llm_provider import ChatMessage, ILLMProvider
from src.interfaces.podcast_provider import IPodcastProvider
from src.interfaces.research_provider import (
    IDeepResearchProvider,
    ResearchCitation,
    ResearchOutput,
)
from src.interfaces.storage_provider import IStorageProvider
from src.interfaces.tts_provider import AudioResult, ITTSProvider, SpeakerTurn, Voice
from src.interfaces.user_provider import IUserProvider
from src.interfaces.voiceover_provider import IVoiceoverProvider

__all__ = [
    "ArticleContent",
    "AudioResult",
    "ChatMessage",
    "GeneratedImage",
    "IArticleProvider",
    "ICacheProvider",
    "ICollaboratorProvider",
    "IDeepResearchProvider",
    "IDocumentProvider",
    "IEventAdapter",
    "IImageGenProvider",
    "IInfographicProvider",
    "IJobProvider",
    "ILLMProvider",
    "IPodcastProvider",
    "IStorageProvider",
    "ITTSProvider",
    "IUserProvider",
    "IVoiceoverProvider",
    "ReferenceImage",
    "ResearchCitation",
    "ResearchOutput",
    "SpeakerTurn",
    "Voice",
]
