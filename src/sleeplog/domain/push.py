"""Web Push subscription records as sent by the browser's PushManager."""

from pydantic import BaseModel, ConfigDict, Field


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscription(BaseModel):
    """
    A browser push endpoint. The endpoint URL is the unique key.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    endpoint: str
    expiration_time: float | None = Field(default=None, alias="expirationTime")
    keys: PushKeys

    def to_subscription_info(self) -> dict:
        """Shape expected by the Web Push client."""
        return {"endpoint": self.endpoint, "keys": self.keys.model_dump()}
