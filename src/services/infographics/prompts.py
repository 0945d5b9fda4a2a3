"""Prompt assembly for infographic image generation and content extraction."""

from __future__ import annotations

from typing import NamedTuple

from src.models.infographic import (
    ExtractedContent,
    InfographicFormat,
    InfographicStyle,
    InfographicType,
)


class FormatDimensions(NamedTuple):
    width: int
    height: int
    label: str


FORMAT_DIMENSIONS: dict[InfographicFormat, FormatDimensions] = {
    InfographicFormat.PORTRAIT: FormatDimensions(1080, 1920, "Portrait (1080x1920)"),
    InfographicFormat.SQUARE: FormatDimensions(1080, 1080, "Square (1080x1080)"),
    InfographicFormat.LANDSCAPE: FormatDimensions(1920, 1080, "Landscape (1920x1080)"),
    InfographicFormat.OG_CARD: FormatDimensions(1200, 630, "OG Card (1200x630)"),
}

TYPE_DIRECTIVES: dict[InfographicType, str] = {
    InfographicType.TIMELINE: (
        "Create an infographic showing a chronological timeline. Arrange events along a "
        "visual timeline with dates, descriptions and icons. Use a clear flow direction."
    ),
    InfographicType.COMPARISON: (
        "Create a comparison infographic with items shown side-by-side. Use columns or "
        "dividers to separate each item. Include matching categories for easy comparison."
    ),
    InfographicType.STATS_DASHBOARD: (
        "Create a statistics dashboard infographic. Visualize data using charts, large "
        "numbers and icons. Highlight key metrics prominently."
    ),
    InfographicType.KEY_TAKEAWAYS: (
        "Create a key takeaways infographic. Present the most important points as a "
        "numbered visual list with icons. Use clear hierarchy."
    ),
}

STYLE_MODIFIERS: dict[InfographicStyle, str] = {
    InfographicStyle.MODERN_MINIMAL: (
        "Style: Clean lines, generous whitespace, neutral palette (black, white, gray, one "
        "accent color), sans-serif typography."
    ),
    InfographicStyle.BOLD_COLORFUL: (
        "Style: Vibrant colors, strong contrast, large text, energetic layout, dynamic shapes."
    ),
    InfographicStyle.CORPORATE: (
        "Style: Professional palette (navy, gray, white), structured grid, restrained "
        "decoration, clear data presentation."
    ),
    InfographicStyle.PLAYFUL: (
        "Style: Rounded shapes, bright warm colors, hand-drawn style elements, friendly typography."
    ),
    InfographicStyle.DARK_MODE: (
        "Style: Dark background, light text, neon accent colors, modern feel."
    ),
    InfographicStyle.EDITORIAL: (
        "Style: Magazine-inspired layout, sophisticated typography, muted color palette, "
        "elegant spacing."
    ),
}

EXTRACTION_HINTS: dict[InfographicType, str] = {
    InfographicType.TIMELINE: (
        "Focus on chronological events with dates, milestones and sequential developments."
    ),
    InfographicType.COMPARISON: (
        "Focus on comparable items, their differences, pros and cons, and side-by-side attributes."
    ),
    InfographicType.STATS_DASHBOARD: (
        "Focus on numerical data, percentages, metrics, growth figures and quantifiable outcomes."
    ),
    InfographicType.KEY_TAKEAWAYS: (
        "Focus on the most important conclusions, actionable insights and headline-worthy points."
    ),
}

EXTRACTION_SYSTEM_PROMPT = (
    "You extract facts from documents for use in an infographic. Be concise and "
    "specific: prefer concrete numbers and names over vague summaries. Respond with "
    'a JSON object: {"summary": "...", "key_points": ["..."], '
    '"statistics": [{"label": "...", "value": "..."}]}'
)

DEFAULT_PROMPT = "Create an infographic"

CONTENT_FILTERED_MESSAGE = (
    "Your infographic could not be generated. Please adjust your prompt and try again."
)


def build_infographic_prompt(
    infographic_type: InfographicType,
    style: InfographicStyle,
    format: InfographicFormat,
    prompt: str | None,
    document_content: str | None = None,
    is_edit: bool = False,
) -> str:
    """Assemble the image prompt.

    A first generation leads with the type directive.  An edit is framed
    around the attached reference image and the user's change request.
    Style and format lines are always appended.
    """
    prompt = (prompt or "").strip() or DEFAULT_PROMPT
    parts: list[str] = []

    if is_edit:
        parts.append(
            "The attached image is an existing infographic. Modify it according to the "
            "instructions below. Preserve the overall layout, typography and color scheme "
            "unless the instructions say otherwise."
        )
        parts.append(f"Edit instructions: {prompt}")
        if document_content:
            parts.append(
                "Use the following source data to update or add content to the infographic. "
                f"Replace placeholder or outdated information with these facts:\n\n{document_content}"
            )
    else:
        parts.append(TYPE_DIRECTIVES[infographic_type])
        if document_content:
            parts.append(
                "The primary content for this infographic comes from the source documents "
                "below. Use these facts, statistics and key points as the data shown in the "
                "infographic. The user's prompt describes the desired focus and framing."
                f"\n\nSource content:\n{document_content}"
            )
            parts.append(f"User's direction: {prompt}")
        else:
            parts.append(f"User's prompt: {prompt}")

    parts.append(STYLE_MODIFIERS[style])
    dims = FORMAT_DIMENSIONS[format]
    parts.append(
        f"Generate at {dims.width}x{dims.height} pixels ({dims.label}). "
        "Optimize layout for this aspect ratio."
    )
    parts.append(
        "Create a professional, clear and visually appealing infographic. Ensure all text "
        "is legible and the layout is well-organized."
    )
    return "\n\n".join(parts)


def build_extraction_prompt(
    documents: list[str],
    selections: list[str] | None = None,
    infographic_type: InfographicType | None = None,
) -> str:
    parts = ["Extract the key facts, statistics and points from these documents."]
    if infographic_type is not None:
        parts.append(
            f'This is for a "{infographic_type.value}" infographic. '
            f"{EXTRACTION_HINTS[infographic_type]}"
        )
    if selections:
        highlighted = "\n".join(f"- {s}" for s in selections)
        parts.append(f"The user highlighted these passages; prioritise them:\n{highlighted}")
    parts.append("\n---\n".join(documents))
    return "\n\n".join(parts)


def format_extracted_content(content: ExtractedContent) -> str:
    parts = [f"Summary: {content.summary}"]
    if content.key_points:
        numbered = "\n".join(f"{i}. {p}" for i, p in enumerate(content.key_points, start=1))
        parts.append(f"Key Points:\n{numbered}")
    if content.statistics:
        stats = "\n".join(f"- {s.label}: {s.value}" for s in content.statistics)
        parts.append(f"Data & Statistics:\n{stats}")
    return "\n\n".join(parts)


def build_title_prompt(prompt: str, document_content: str | None = None) -> str:
    if document_content:
        context = (
            "The infographic is based on source documents with this content:\n"
            f'{document_content}\n\nThe user\'s direction: "{prompt}"'
        )
    else:
        context = f'The infographic is about: "{prompt}"'
    return (
        f"Generate a short, descriptive title (3-6 words) for an infographic. {context}\n\n"
        "Return only the title, no quotes or punctuation at the end."
    )
