"""Content Studio domain models, re-exported for convenient imports.

Submodules by concern:
    - user.py          accounts and roles
    - document.py      documents and research metadata
    - podcast.py       podcasts, script segments and versions
    - collaborator.py  podcast / voiceover collaborators
    - voiceover.py     single-voice narrations
    - infographic.py   infographics, selections and versions
    - job.py           background jobs
    - events.py        SSE payloads
"""

from src.models.collaborator import Collaborator, CollaboratorEntity
from src.models.document import (
    Document,
    DocumentPage,
    DocumentSource,
    DocumentStatus,
    ResearchConfig,
    ResearchSource,
)
from src.models.events import ChangeType, EntityChangeEvent, EntityType, JobCompletionEvent
from src.models.infographic import (
    ExtractedContent,
    ExtractedStatistic,
    Infographic,
    InfographicFormat,
    InfographicSelection,
    InfographicStatus,
    InfographicStyle,
    InfographicType,
    InfographicVersion,
)
from src.models.job import Job, JobStatus, JobType
from src.models.podcast import (
    Podcast,
    PodcastFormat,
    PodcastPage,
    PodcastStatus,
    ScriptSegment,
    ScriptVersion,
)
from src.models.user import User, UserRole
from src.models.voiceover import Voiceover, VoiceoverStatus

__all__ = [
    "ChangeType",
    "Collaborator",
    "CollaboratorEntity",
    "Document",
    "DocumentPage",
    "DocumentSource",
    "DocumentStatus",
    "EntityChangeEvent",
    "EntityType",
    "ExtractedContent",
    "ExtractedStatistic",
    "Infographic",
    "InfographicFormat",
    "InfographicSelection",
    "InfographicStatus",
    "InfographicStyle",
    "InfographicType",
    "InfographicVersion",
    "Job",
    "JobCompletionEvent",
    "JobStatus",
    "JobType",
    "Podcast",
    "PodcastFormat",
    "PodcastPage",
    "PodcastStatus",
    "ResearchConfig",
    "ResearchSource",
    "ScriptSegment",
    "ScriptVersion",
    "User",
    "UserRole",
    "Voiceover",
    "VoiceoverStatus",
]
