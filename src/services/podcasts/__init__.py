"""Podcast helpers used by PodcastService.

- **state_machine** -- status transitions, edit classification and
  progress steps as pure functions.
- **prompts** -- format-aware system and user prompts for script writing.
"""

from src.services.podcasts import prompts
from src.services.podcasts.state_machine import (
    VALID_TRANSITIONS,
    EditType,
    assert_transition,
    calculate_steps,
    detect_edit_type,
    determine_new_version_status,
    is_valid_transition,
)

__all__ = [
    "EditType",
    "VALID_TRANSITIONS",
    "assert_transition",
    "calculate_steps",
    "detect_edit_type",
    "determine_new_version_status",
    "is_valid_transition",
    "prompts",
]
