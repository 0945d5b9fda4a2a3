"""Background job model for the unified worker queue."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobType(str, Enum):
    GENERATE_PODCAST = "generate-podcast"
    GENERATE_SCRIPT = "generate-script"
    GENERATE_AUDIO = "generate-audio"
    GENERATE_VOICEOVER = "generate-voiceover"
    GENERATE_INFOGRAPHIC = "generate-infographic"
    PROCESS_URL = "process-url"
    PROCESS_RESEARCH = "process-research"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


PODCAST_JOB_TYPES = frozenset(
    {JobType.GENERATE_PODCAST, JobType.GENERATE_SCRIPT, JobType.GENERATE_AUDIO}
)
DOCUMENT_JOB_TYPES = frozenset({JobType.PROCESS_URL, JobType.PROCESS_RESEARCH})


class Job(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: JobType
    status: JobStatus = JobStatus.PENDING
    payload: dict[str, Any] = Field(default_factory=dict)
    result: dict[str, Any] | None = None
    error: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
