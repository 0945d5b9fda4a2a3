"""Abstract base class for image generation providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.models.infographic import InfographicFormat


@dataclass(frozen=True)
class ReferenceImage:
    """An existing image the provider should edit rather than start from scratch."""

    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    mime_type: str = "image/png"


# Concrete implementation: OpenAIImageProvider (src/providers/image/)
class IImageGenProvider(ABC):
    """Contract for text-to-image services used by infographics."""

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        format: InfographicFormat,
        reference_image: ReferenceImage | None = None,
    ) -> GeneratedImage:
        """Generate (or edit, when *reference_image* is given) an image.

        Raises
        ------
        src.utils.errors.ImageGenContentFilteredError
            If the provider refuses the prompt on content-policy grounds.
        src.utils.errors.ImageGenError
            For any other provider failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this provider."""
