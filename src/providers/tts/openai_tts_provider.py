"""OpenAI text-to-speech provider.

Each speaker turn is rendered separately with ``response_format="pcm"``
(raw 24 kHz, 16-bit, mono samples), the PCM chunks are concatenated in
order, and the result is wrapped in a WAV container.  A short silence is
inserted between turns so dialogue does not run together.
"""

from __future__ import annotations

import io
import wave

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.tts_provider import AudioResult, ITTSProvider, SpeakerTurn, Voice
from src.utils.errors import TTSError

logger = structlog.get_logger(logger_name=__name__)

SAMPLE_RATE = 24000
SAMPLE_WIDTH = 2
CHANNELS = 1
# 16-bit mono at 24 kHz
BYTES_PER_SECOND = SAMPLE_RATE * SAMPLE_WIDTH * CHANNELS

_TURN_GAP = b"\x00\x00" * int(SAMPLE_RATE * 0.25)
_DEFAULT_MODEL = "gpt-4o-mini-tts"

VOICES: list[Voice] = [
    Voice("alloy", "Alloy", "neutral", "Balanced and even-toned"),
    Voice("ash", "Ash", "male", "Clear and direct"),
    Voice("ballad", "Ballad", "male", "Warm and expressive"),
    Voice("coral", "Coral", "female", "Bright and friendly"),
    Voice("echo", "Echo", "male", "Smooth and resonant"),
    Voice("fable", "Fable", "neutral", "Storyteller with a light accent"),
    Voice("nova", "Nova", "female", "Energetic and upbeat"),
    Voice("onyx", "Onyx", "male", "Deep and authoritative"),
    Voice("sage", "Sage", "female", "Calm and measured"),
    Voice("shimmer", "Shimmer", "female", "Soft and gentle"),
]

DEFAULT_HOST_VOICE = "onyx"
DEFAULT_CO_HOST_VOICE = "nova"
DEFAULT_VOICEOVER_VOICE = "onyx"


def get_voice(voice_id: str) -> Voice | None:
    return next((v for v in VOICES if v.id == voice_id), None)


def wrap_pcm_as_wav(pcm: bytes) -> bytes:
    """Wrap raw 24 kHz 16-bit mono PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(CHANNELS)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(pcm)
    return buffer.getvalue()


class OpenAITTSProvider(ITTSProvider):
    """Speech synthesis via the OpenAI audio API."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        client_kwargs: dict = {"api_key": settings.openai_api_key or "missing"}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = client or openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_tts_model or _DEFAULT_MODEL

    async def synthesize(self, turns: list[SpeakerTurn]) -> AudioResult:
        if not turns:
            raise TTSError(message="Nothing to synthesize", provider_name=self.get_provider_name())

        chunks: list[bytes] = []
        for position, turn in enumerate(turns):
            if position:
                chunks.append(_TURN_GAP)
            chunks.append(await self._render_turn(turn))

        pcm = b"".join(chunks)
        logger.info(
            "tts_synthesized",
            model=self._model,
            turns=len(turns),
            seconds=round(len(pcm) / BYTES_PER_SECOND, 1),
        )
        return AudioResult(data=wrap_pcm_as_wav(pcm), mime_type="audio/wav", sample_rate=SAMPLE_RATE)

    async def _render_turn(self, turn: SpeakerTurn) -> bytes:
        try:
            response = await self._client.audio.speech.create(
                model=self._model,
                voice=turn.voice,
                input=turn.text,
                response_format="pcm",
            )
        except openai.APIError as exc:
            raise TTSError(
                message=f"Speech synthesis failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return response.content

    def list_voices(self) -> list[Voice]:
        return list(VOICES)

    def get_provider_name(self) -> str:
        return "openai-tts"
