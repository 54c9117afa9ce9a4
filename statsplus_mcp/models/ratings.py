"""Ratings export job models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from yarl import URL

SplitId = Literal[1, 2, 3]


class RatingsJobHandle(BaseModel):
    """Backend-issued poll URL identifying one running ratings export."""

    model_config = ConfigDict(frozen=True)

    poll_url: str = Field(..., description="Absolute URL to poll for the export result")

    @field_validator("poll_url")
    @classmethod
    def _require_absolute_url(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("poll_url must be a single absolute URL")
        try:
            url = URL(value)
        except ValueError as e:
            raise ValueError(f"poll_url is not a URL: {e}") from e
        if not url.is_absolute() or not url.host:
            raise ValueError("poll_url must be an absolute URL such as https://statsplus.net/...")
        return value
