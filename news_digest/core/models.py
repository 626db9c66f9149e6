"""
Data model shared by the extraction pipeline
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils import format_iso_timestamp

DEFAULT_CATEGORY = "general"


class FeedSource(BaseModel):
    """A configured feed. Immutable for the duration of a run."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    category: str = DEFAULT_CATEGORY

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_CATEGORY
        return value


@dataclass
class Item:
    """A normalized headline extracted from a feed document"""
    title: str
    url: str
    source: str
    category: str = DEFAULT_CATEGORY
    published: Optional[datetime] = None
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-ready dict

        Returns:
            dict with ``published`` as an ISO-8601 UTC instant or None
        """
        return {
            "source": self.source,
            "category": self.category,
            "title": self.title,
            "url": self.url,
            "published": format_iso_timestamp(self.published) if self.published else None,
            "summary": self.summary,
        }
