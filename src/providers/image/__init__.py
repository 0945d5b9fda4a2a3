"""Image generation providers used by infographics."""

from src.providers.image.openai_image_provider import OpenAIImageProvider

__all__ = ["OpenAIImageProvider"]
