"""
Persisted notification records and reasoning decisions.

Records are decoded permissively: fields missing from older documents fall
back to their defaults instead of failing the whole history.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID


def generate_notification_id() -> str:
    """Generate a sortable unique notification ID using ULID."""
    return str(ULID())


class Feedback(str, Enum):
    USEFUL = "useful"
    NOT_USEFUL = "not_useful"


class NotificationRecord(BaseModel):
    """A notification accepted by the gate and delivered to the user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default_factory=generate_notification_id)
    title: str
    body: str
    sent_at: datetime = Field(alias="sentAt")
    feedback: Feedback | None = None
    feedback_given_at: datetime | None = Field(default=None, alias="feedbackGivenAt")


class NotificationDecision(BaseModel):
    """Structured answer of the reasoning provider."""

    should_send: bool = Field(description="Whether to send a notification right now")
    title: str | None = Field(
        default=None, description="Short notification title (if sending)"
    )
    body: str | None = Field(
        default=None, description="Notification body message (if sending)"
    )
