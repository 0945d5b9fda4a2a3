"""Abstract base class for text-to-speech providers.

A TTS provider turns an ordered list of speaker turns into one audio file.
Podcasts pass many turns across two voices; voiceovers pass a single turn.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SpeakerTurn:
    """A line of text and the voice id that should speak it."""

    voice: str
    text: str


@dataclass(frozen=True)
class Voice:
    """Catalogue entry describing a selectable voice."""

    id: str
    name: str
    gender: str
    description: str


@dataclass(frozen=True)
class AudioResult:
    """Synthesised audio.

    Attributes
    ----------
    data:
        Encoded audio bytes (WAV for the bundled provider).
    mime_type:
        MIME type of ``data``.
    sample_rate:
        Samples per second of the PCM payload.
    """

    data: bytes
    mime_type: str = "audio/wav"
    sample_rate: int = 24000


# Concrete implementation: OpenAITTSProvider (src/providers/tts/)
class ITTSProvider(ABC):
    """Contract for speech synthesis services."""

    @abstractmethod
    async def synthesize(self, turns: list[SpeakerTurn]) -> AudioResult:
        """Render *turns* in order and return a single audio file.

        Raises
        ------
        src.utils.errors.TTSError
            If synthesis fails for any turn.
        """

    @abstractmethod
    def list_voices(self) -> list[Voice]:
        """Return the voices this provider can speak with."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this provider."""
