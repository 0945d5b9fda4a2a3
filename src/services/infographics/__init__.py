"""Infographic prompt assembly: type directives, style modifiers, format
dimensions and key-point extraction prompts."""

from src.services.infographics.prompts import (
    FORMAT_DIMENSIONS,
    STYLE_MODIFIERS,
    TYPE_DIRECTIVES,
    build_infographic_prompt,
)

__all__ = [
    "FORMAT_DIMENSIONS",
    "STYLE_MODIFIERS",
    "TYPE_DIRECTIVES",
    "build_infographic_prompt",
]
