"""Background job processing: the durable queue and the unified worker."""

from src.pipeline.job_queue import JobQueue
from src.pipeline.worker import UnifiedWorker

__all__ = [
    "JobQueue",
    "UnifiedWorker",
]
