"""Notification payload reported to the presentation layer."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from app.models.enums import NotificationVariant


class Notification(BaseModel):
    """Outcome of a profile operation, rendered as a toast by the UI."""

    event: str
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.default
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
