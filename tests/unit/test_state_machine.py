"""Unit tests for the podcast status lifecycle helpers."""

from __future__ import annotations

import pytest

from src.models.podcast import PodcastStatus
from src.services.podcasts.state_machine import (
    VALID_TRANSITIONS,
    EditType,
    assert_transition,
    calculate_steps,
    can_regenerate,
    detect_edit_type,
    determine_new_version_status,
    is_generating,
    is_terminal,
    is_valid_transition,
)
from src.utils.errors import InvalidStatusTransition


# ─── Transitions ──────────────────────────────────────────────────


def test_every_status_has_a_transition_row():
    assert set(VALID_TRANSITIONS) == set(PodcastStatus)


@pytest.mark.parametrize(
    "current, target",
    [
        (PodcastStatus.DRAFTING, PodcastStatus.GENERATING_SCRIPT),
        (PodcastStatus.GENERATING_SCRIPT, PodcastStatus.SCRIPT_READY),
        (PodcastStatus.SCRIPT_READY, PodcastStatus.GENERATING_AUDIO),
        (PodcastStatus.GENERATING_AUDIO, PodcastStatus.READY),
        (PodcastStatus.READY, PodcastStatus.SCRIPT_READY),
        (PodcastStatus.FAILED, PodcastStatus.GENERATING_AUDIO),
    ],
)
def test_valid_transitions(current, target):
    assert is_valid_transition(current, target)
    assert_transition(current, target)


@pytest.mark.parametrize(
    "current, target",
    [
        (PodcastStatus.DRAFTING, PodcastStatus.READY),
        (PodcastStatus.DRAFTING, PodcastStatus.GENERATING_AUDIO),
        (PodcastStatus.GENERATING_SCRIPT, PodcastStatus.READY),
        (PodcastStatus.GENERATING_AUDIO, PodcastStatus.DRAFTING),
        (PodcastStatus.FAILED, PodcastStatus.READY),
    ],
)
def test_invalid_transitions_raise(current, target):
    assert not is_valid_transition(current, target)
    with pytest.raises(InvalidStatusTransition) as exc_info:
        assert_transition(current, target)
    assert current.value in exc_info.value.message


def test_same_status_is_always_allowed():
    for status in PodcastStatus:
        assert is_valid_transition(status, status)


# ─── Steps ────────────────────────────────────────────────────────


def _states(steps):
    return {s["step"]: s["state"] for s in steps}


def test_steps_for_drafting_are_pending():
    assert _states(calculate_steps(PodcastStatus.DRAFTING)) == {"script": "pending", "audio": "pending"}


def test_steps_while_generating_audio():
    assert _states(calculate_steps(PodcastStatus.GENERATING_AUDIO)) == {
        "script": "completed",
        "audio": "in_progress",
    }


def test_steps_for_ready():
    assert _states(calculate_steps(PodcastStatus.READY)) == {"script": "completed", "audio": "completed"}


def test_failed_at_script_step():
    assert _states(calculate_steps(PodcastStatus.FAILED, "script")) == {
        "script": "failed",
        "audio": "pending",
    }


def test_failed_without_step_blames_audio():
    assert _states(calculate_steps(PodcastStatus.FAILED)) == {"script": "completed", "audio": "failed"}


# ─── Edit classification ──────────────────────────────────────────


def test_prompt_change_beats_everything():
    changes = {"prompt_instructions": "shorter", "host_voice": "nova", "segments": [1]}
    assert detect_edit_type(changes) == EditType.PROMPT_OR_DOCS


def test_voice_change_beats_segments():
    assert detect_edit_type({"co_host_voice": "ash", "segments": [1]}) == EditType.VOICE


def test_none_values_are_ignored():
    assert detect_edit_type({"segments": None, "host_voice": None}) == EditType.NONE


def test_metadata_only():
    assert detect_edit_type({"title": "New"}) == EditType.METADATA


@pytest.mark.parametrize(
    "edit_type, expected",
    [
        (EditType.SEGMENTS, PodcastStatus.SCRIPT_READY),
        (EditType.VOICE, PodcastStatus.SCRIPT_READY),
        (EditType.PROMPT_OR_DOCS, PodcastStatus.DRAFTING),
        (EditType.METADATA, None),
        (EditType.NONE, None),
    ],
)
def test_new_version_status(edit_type, expected):
    assert determine_new_version_status(edit_type) == expected


# ─── Predicates ───────────────────────────────────────────────────


def test_predicates():
    assert is_generating(PodcastStatus.GENERATING_SCRIPT)
    assert not is_generating(PodcastStatus.READY)
    assert is_terminal(PodcastStatus.FAILED)
    assert not is_terminal(PodcastStatus.SCRIPT_READY)
    assert can_regenerate(PodcastStatus.READY)
    assert not can_regenerate(PodcastStatus.GENERATING_AUDIO)
