"""Models for generation backend results."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageChunk:
    """One image received from the backend stream."""

    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class GeneratedImage:
    """An uploaded variant paired with the style it was requested for."""

    url: str
    style: str


@dataclass(frozen=True)
class GenerationResult:
    """Aggregate output of one generation call.

    Mirrors the invocation response: ``styles`` may be shorter than
    ``generated_urls`` when the backend does not report every label.
    """

    generated_urls: list[str] = field(default_factory=list)
    styles: list[str] = field(default_factory=list)

    @classmethod
    def from_images(cls, images: list[GeneratedImage]) -> "GenerationResult":
        return cls(
            generated_urls=[image.url for image in images],
            styles=[image.style for image in images],
        )

    def is_empty(self) -> bool:
        return not self.generated_urls
