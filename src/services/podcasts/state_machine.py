"""Podcast status lifecycle as pure functions.

# ─── STATE DIAGRAM ───────────────────────────────────────────────────
#
#   drafting ──→ generating_script ──→ script_ready ──→ generating_audio ──→ ready
#                        │    ↑             │  ↑                │              │
#                        ↓    └─────────────┘  └────────────────│──────────────┘
#                      failed ←─────────────────────────────────┘
#
# ``failed`` can restart either step; ``ready`` and ``script_ready`` fall
# back to ``drafting`` when the prompt or source documents change.
# ──────────────────────────────────────────────────────────────────────

Nothing here touches storage.  PodcastService calls ``assert_transition``
before generation and save-changes status writes; manual script edits
bypass it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from src.models.podcast import PodcastStatus
from src.utils.errors import InvalidStatusTransition

VALID_TRANSITIONS: dict[PodcastStatus, frozenset[PodcastStatus]] = {
    PodcastStatus.DRAFTING: frozenset({PodcastStatus.GENERATING_SCRIPT}),
    PodcastStatus.GENERATING_SCRIPT: frozenset({PodcastStatus.SCRIPT_READY, PodcastStatus.FAILED}),
    PodcastStatus.SCRIPT_READY: frozenset({
        PodcastStatus.GENERATING_AUDIO,
        PodcastStatus.DRAFTING,
        PodcastStatus.GENERATING_SCRIPT,
    }),
    PodcastStatus.GENERATING_AUDIO: frozenset({PodcastStatus.READY, PodcastStatus.FAILED}),
    PodcastStatus.READY: frozenset({
        PodcastStatus.SCRIPT_READY,
        PodcastStatus.DRAFTING,
        PodcastStatus.GENERATING_SCRIPT,
        PodcastStatus.GENERATING_AUDIO,
    }),
    PodcastStatus.FAILED: frozenset({
        PodcastStatus.DRAFTING,
        PodcastStatus.GENERATING_SCRIPT,
        PodcastStatus.GENERATING_AUDIO,
    }),
}

_GENERATING = frozenset({PodcastStatus.GENERATING_SCRIPT, PodcastStatus.GENERATING_AUDIO})
_TERMINAL = frozenset({PodcastStatus.READY, PodcastStatus.FAILED})


class EditType(str, Enum):
    PROMPT_OR_DOCS = "prompt_or_docs"
    VOICE = "voice"
    SEGMENTS = "segments"
    METADATA = "metadata"
    NONE = "none"


class StepState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


_PROMPT_FIELDS = ("prompt_instructions", "source_document_ids")
_VOICE_FIELDS = ("host_voice", "co_host_voice")
_METADATA_FIELDS = ("title", "description", "tags", "target_duration_minutes", "format")


def is_valid_transition(current: PodcastStatus, target: PodcastStatus) -> bool:
    if current == target:
        return True
    return target in VALID_TRANSITIONS.get(current, frozenset())


def assert_transition(current: PodcastStatus, target: PodcastStatus) -> None:
    if not is_valid_transition(current, target):
        raise InvalidStatusTransition(
            message=f"Cannot move podcast from {current.value} to {target.value}"
        )


def calculate_steps(status: PodcastStatus, failed_step: str | None = None) -> list[dict[str, str]]:
    """Return the two progress steps (script, audio) for display.

    *failed_step* names the step a ``failed`` podcast failed at
    (``"script"`` or ``"audio"``); anything else is treated as audio.
    """
    script, audio = StepState.PENDING, StepState.PENDING
    if status == PodcastStatus.GENERATING_SCRIPT:
        script = StepState.IN_PROGRESS
    elif status == PodcastStatus.SCRIPT_READY:
        script = StepState.COMPLETED
    elif status == PodcastStatus.GENERATING_AUDIO:
        script, audio = StepState.COMPLETED, StepState.IN_PROGRESS
    elif status == PodcastStatus.READY:
        script, audio = StepState.COMPLETED, StepState.COMPLETED
    elif status == PodcastStatus.FAILED:
        if failed_step == "script":
            script = StepState.FAILED
        else:
            script, audio = StepState.COMPLETED, StepState.FAILED
    return [
        {"step": "script", "state": script.value},
        {"step": "audio", "state": audio.value},
    ]


def detect_edit_type(changes: dict[str, Any]) -> EditType:
    """Classify a change set; the highest-impact field wins."""
    present = {k for k, v in changes.items() if v is not None}
    if present.intersection(_PROMPT_FIELDS):
        return EditType.PROMPT_OR_DOCS
    if present.intersection(_VOICE_FIELDS):
        return EditType.VOICE
    if "segments" in present:
        return EditType.SEGMENTS
    if present.intersection(_METADATA_FIELDS):
        return EditType.METADATA
    return EditType.NONE


def determine_new_version_status(edit_type: EditType) -> PodcastStatus | None:
    if edit_type in (EditType.SEGMENTS, EditType.VOICE):
        return PodcastStatus.SCRIPT_READY
    if edit_type == EditType.PROMPT_OR_DOCS:
        return PodcastStatus.DRAFTING
    return None


def can_regenerate(status: PodcastStatus) -> bool:
    return status not in _GENERATING


def is_terminal(status: PodcastStatus) -> bool:
    return status in _TERMINAL


def is_generating(status: PodcastStatus) -> bool:
    return status in _GENERATING
