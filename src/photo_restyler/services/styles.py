"""Style planning for generation requests."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from photo_restyler.domain.styles import StyleDescriptor, StyleSuggestions
from photo_restyler.services.images import to_data_url

_logger = logging.getLogger(__name__)

DEFAULT_STYLES: tuple[StyleDescriptor, ...] = (
    StyleDescriptor(
        "Golden Hour Glow",
        "Keep the exact same scene and background, but change to warm golden "
        "hour lighting with sunset tones, soft shadows, and a natural glow",
    ),
    StyleDescriptor(
        "Cinematic Drama",
        "Maintain the same location and composition, but add dramatic "
        "lighting, deeper contrast, and a moody atmosphere like a movie scene",
    ),
    StyleDescriptor(
        "Vibrant Pop",
        "Same scene but boost colors to be more vibrant and saturated, bright "
        "and eye-catching",
    ),
    StyleDescriptor(
        "Dreamy Soft",
        "Keep everything the same but add a soft dreamy filter, pastel tones, "
        "and gentle bokeh for an ethereal mood",
    ),
    StyleDescriptor(
        "Misty Morning",
        "Soft dawn fog hugging the same landscape, with pastel tones and a "
        "gentle glow",
    ),
    StyleDescriptor(
        "Midnight Aurora",
        "Nighttime treatment of the identical scene with northern lights "
        "rippling above the existing silhouettes",
    ),
)

STYLE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "styles": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "instruction": {"type": "string"},
                },
                "required": ["name", "instruction"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["styles"],
    "additionalProperties": False,
}

_LEADING_MARKERS = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")


class StylePlanner(Protocol):
    """Produces the ordered style plan for one generation."""

    async def plan(self, image_bytes: bytes) -> list[StyleDescriptor]:
        """Return a non-empty list of styles to request."""


class VisionClient(Protocol):
    """Interface for LLM vision calls with structured output."""

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured data describing the image."""


@dataclass
class StaticStylePlanner:
    """Returns a curated list of styles regardless of the image."""

    count: int = 4
    styles: tuple[StyleDescriptor, ...] = DEFAULT_STYLES

    async def plan(self, image_bytes: bytes) -> list[StyleDescriptor]:
        return self.fixed_plan()

    def fixed_plan(self) -> list[StyleDescriptor]:
        return list(self.styles[: max(self.count, 1)])


@dataclass
class CaptionStylePlanner:
    """Asks a vision model for styles that suit the photo.

    Falls back to the static plan when the call fails or nothing usable
    comes back.
    """

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool
    fallback: StaticStylePlanner

    async def plan(self, image_bytes: bytes) -> list[StyleDescriptor]:
        count = self.fallback.count
        prompt = (
            "You are an art director restyling the SAME scene shown in the photo. "
            f"Propose {count} style treatments that keep the subject, "
            "composition, and geography recognizable. For each, give a short "
            "evocative name (2-3 words) and one sentence describing how "
            "lighting, mood, season, weather, or color grading change. "
            "Do not invent new structures or move the camera."
        )
        try:
            raw = await self.client.extract(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=to_data_url(image_bytes),
                schema=STYLE_SCHEMA,
                prompt=prompt,
            )
            styles = _styles_from_payload(raw, count)
        except ValidationError as exc:
            _logger.warning("Style suggestions unparseable, using defaults: %s", exc)
            return self.fallback.fixed_plan()
        except Exception:
            _logger.exception("Style suggestion call failed, using defaults")
            return self.fallback.fixed_plan()

        if not styles:
            _logger.warning("No style suggestions returned, using defaults")
            return self.fallback.fixed_plan()
        _logger.info("Planned %s styles from caption", min(len(styles), count))
        return styles[:count]


def _styles_from_payload(raw: dict[str, object], limit: int) -> list[StyleDescriptor]:
    text = raw.get("text")
    if isinstance(text, str):
        return parse_style_lines(text, limit)
    suggestions = StyleSuggestions.model_validate(raw)
    styles = []
    for suggestion in suggestions.styles:
        name = clean_style_name(suggestion.name)
        if name:
            styles.append(StyleDescriptor(name, suggestion.instruction.strip()))
    return styles


def clean_style_name(name: str) -> str:
    """Strip bullet and numbering markers from a style name."""
    return _LEADING_MARKERS.sub("", name).strip()


def parse_style_lines(text: str, limit: int) -> list[StyleDescriptor]:
    """Parse ``Style Name - description`` lines from a free-text reply."""
    styles: list[StyleDescriptor] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "variation" in stripped.lower():
            continue
        cleaned = clean_style_name(stripped)
        name, separator, instruction = cleaned.partition(" - ")
        if not separator or not name.strip():
            continue
        styles.append(StyleDescriptor(name.strip(), instruction.strip()))
        if len(styles) >= limit:
            break
    return styles


def create_style_planner(  # noqa: PLR0913
    kind: str,
    *,
    count: int,
    client: VisionClient | None = None,
    model: str = "",
    reasoning_effort: str | None = None,
    store: bool = False,
) -> StylePlanner:
    """Build the configured planner."""
    static = StaticStylePlanner(count=count)
    if kind == "caption":
        if client is None:
            raise ValueError("Caption style planner requires a vision client")
        return CaptionStylePlanner(
            client=client,
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
            fallback=static,
        )
    return static
