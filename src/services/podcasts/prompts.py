"""Prompt builders for podcast script generation."""

from __future__ import annotations

from src.models.podcast import Podcast, PodcastFormat

HOST_SPEAKER = "host"
CO_HOST_SPEAKER = "cohost"

_CONVERSATION_BASE = f"""You are a podcast script writer creating engaging dialogue between two hosts.
Use "{HOST_SPEAKER}" and "{CO_HOST_SPEAKER}" as speaker names.
Create natural back-and-forth conversation that explains the content clearly.
Include moments of curiosity, clarification, and enthusiasm.
Hosts can agree, disagree, ask follow-up questions and share insights."""

_MONOLOGUE_BASE = f"""You are a podcast script writer creating an engaging monologue.
Use "{HOST_SPEAKER}" as the single speaker name.
Create clear, engaging narration that explains the content thoroughly.
Use rhetorical questions and varied pacing to hold the listener's interest.
Break complex topics into digestible segments with natural transitions."""

_OUTPUT_FORMAT = """Respond with a single JSON object:
{
  "title": "episode title",
  "description": "1-2 sentences on what listeners will learn",
  "summary": "summary of the key points covered",
  "tags": ["3-5 lowercase keywords"],
  "segments": [{"speaker": "host", "line": "..."}]
}"""

# Roughly 150 spoken words per minute.
WORDS_PER_MINUTE = 150


def build_system_prompt(
    podcast_format: PodcastFormat,
    instructions: str | None = None,
    target_duration_minutes: int | None = None,
) -> str:
    parts = [_CONVERSATION_BASE if podcast_format == PodcastFormat.CONVERSATION else _MONOLOGUE_BASE]
    if target_duration_minutes:
        words = target_duration_minutes * WORDS_PER_MINUTE
        parts.append(
            f"Aim for about {target_duration_minutes} minutes of audio (roughly {words} words)."
        )
    parts.append(_OUTPUT_FORMAT)
    if instructions and instructions.strip():
        parts.append(f"# Additional Instructions\n{instructions.strip()}")
    return "\n\n".join(parts)


def build_user_prompt(podcast: Podcast, document_content: str) -> str:
    context = ""
    if podcast.title:
        context = f'Working title: "{podcast.title}"\n'
        if podcast.description:
            context += f"Working description: {podcast.description}\n"
        context += "\n"

    return f"""Create a podcast episode based on the following source material.

{context}Source content:
---
{document_content}
---

Generate:
1. A compelling title for this podcast episode
2. A brief description (1-2 sentences) summarizing what listeners will learn
3. A summary of the key points covered
4. 3-5 relevant tags for categorization
5. The full script with speaker segments

Each segment has a speaker and their line of dialogue.
The script should flow naturally and cover the key points from the source material."""


def format_generation_prompt(system_prompt: str, user_prompt: str) -> str:
    return f"System: {system_prompt}\n\nUser: {user_prompt}"
