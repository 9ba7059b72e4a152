# Delivery Transports Package
from .pushbullet import PushbulletTransport
from .web_push import WebPushTransport, generate_vapid_keys

__all__ = ["PushbulletTransport", "WebPushTransport", "generate_vapid_keys"]
