"""
Data model for companion video generation.

- WisdomEntry: curated content item as cached by the posting pipeline
- GenerationRequest / GenerationResult: immutable per-call values
- GenerateResponse: wire model for the companion's /generate reply
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_SOURCE_LABEL = "wisdombook.life"

_DISALLOWED_TITLE_CHARS = re.compile(r"[^\w\s]|_")


def sanitize_title(title: str) -> str:
    """
    Convert a title to the Initial_Caps_With_Underscores node name.

    Example:
        >>> sanitize_title("the fear of the LORD!")
        'The_Fear_Of_The_Lord'
    """
    cleaned = _DISALLOWED_TITLE_CHARS.sub(" ", title)
    words = cleaned.split()
    return "_".join(word[:1].upper() + word[1:].lower() for word in words)


@dataclass(frozen=True)
class WisdomEntry:
    """A wisdom entry from the content feed."""
    title: str
    content: str
    category: str
    reference: Optional[str] = None
    pub_date: Optional[datetime] = None
    link: Optional[str] = None


@dataclass(frozen=True)
class GenerationRequest:
    """Request for a single companion render."""
    title: str
    content: str
    content_type: str
    source_label: str = DEFAULT_SOURCE_LABEL
    node_title: str = ""

    def __post_init__(self):
        if not self.node_title:
            object.__setattr__(self, "node_title", sanitize_title(self.title))

    @classmethod
    def from_entry(cls, entry: WisdomEntry) -> "GenerationRequest":
        """Build a request from a wisdom entry."""
        return cls(
            title=entry.title,
            content=entry.content,
            content_type=entry.category.lower(),
            source_label=entry.reference or DEFAULT_SOURCE_LABEL,
        )

    def to_payload(self, ping_pong: bool = True) -> dict[str, Any]:
        """Request body for POST /generate."""
        return {
            "title": self.title,
            "content": self.content,
            "content_type": self.content_type,
            "node_title": self.node_title,
            "ping_pong": ping_pong,
        }


@dataclass(frozen=True)
class GenerationResult:
    """Result of a successful render."""
    video_path: str


class GenerateResponse(BaseModel):
    """Companion reply to POST /generate.

    Fields of the wrong JSON type are treated as absent so validation can
    report the specific failure instead of a schema error.
    """

    model_config = ConfigDict(extra="ignore")

    success: Optional[bool] = None
    error: Optional[str] = None
    video_path: Optional[str] = None

    @field_validator("success", mode="before")
    @classmethod
    def _strict_bool(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None

    @field_validator("error", "video_path", mode="before")
    @classmethod
    def _strict_str(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None
