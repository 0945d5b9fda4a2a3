"""OpenAI image generation provider (``images.generate`` / ``images.edit``)."""

from __future__ import annotations

import base64

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.image_provider import GeneratedImage, IImageGenProvider, ReferenceImage
from src.models.infographic import InfographicFormat
from src.utils.errors import ImageGenContentFilteredError, ImageGenError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "gpt-image-1"

# The API only accepts three sizes; the prompt carries the exact dimensions.
_FORMAT_SIZES: dict[InfographicFormat, str] = {
    InfographicFormat.PORTRAIT: "1024x1536",
    InfographicFormat.SQUARE: "1024x1024",
    InfographicFormat.LANDSCAPE: "1536x1024",
    InfographicFormat.OG_CARD: "1536x1024",
}

_FILTER_MARKERS = ("moderation", "safety", "content policy", "content_policy", "blocked")


def _is_content_filtered(exc: openai.APIError) -> bool:
    code = str(getattr(exc, "code", "") or "").lower()
    text = f"{code} {exc}".lower()
    return any(marker in text for marker in _FILTER_MARKERS)


class OpenAIImageProvider(IImageGenProvider):
    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        client_kwargs: dict = {
            "api_key": settings.openai_api_key or "missing",
            "timeout": openai.Timeout(300.0, connect=10.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = client or openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_image_model or _DEFAULT_MODEL

    async def generate_image(
        self,
        prompt: str,
        format: InfographicFormat,
        reference_image: ReferenceImage | None = None,
    ) -> GeneratedImage:
        size = _FORMAT_SIZES[format]
        try:
            if reference_image is not None:
                response = await self._client.images.edit(
                    model=self._model,
                    image=("reference.png", reference_image.data, reference_image.mime_type),
                    prompt=prompt,
                    size=size,
                )
            else:
                response = await self._client.images.generate(
                    model=self._model,
                    prompt=prompt,
                    size=size,
                )
        except openai.APIError as exc:
            if _is_content_filtered(exc):
                raise ImageGenContentFilteredError(
                    message=str(exc), provider_name=self.get_provider_name()
                ) from exc
            raise ImageGenError(
                message=f"Image generation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data or not response.data[0].b64_json:
            raise ImageGenError(
                message="No image data in response",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "image_generated",
            model=self._model,
            size=size,
            edit=reference_image is not None,
        )
        return GeneratedImage(data=base64.b64decode(response.data[0].b64_json), mime_type="image/png")

    def get_provider_name(self) -> str:
        return "openai-image"
