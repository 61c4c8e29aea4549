"""Models for style plans."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class StyleDescriptor:
    """A named restyling treatment."""

    name: str
    instruction: str

    @property
    def label(self) -> str:
        return f"{self.name} - {self.instruction}"


class StyleSuggestion(BaseModel):
    """Single style proposed by the captioning model."""

    name: str = Field(min_length=1)
    instruction: str = Field(min_length=1)


class StyleSuggestions(BaseModel):
    """Structured output for style proposals."""

    styles: list[StyleSuggestion]
