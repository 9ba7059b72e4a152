# Application Notifications Package
from .dispatcher import NotificationDispatcher
from .gate import GatePolicy, GateRejection, NotificationGate
from .insights import InsightService

__all__ = [
    "GatePolicy",
    "GateRejection",
    "InsightService",
    "NotificationDispatcher",
    "NotificationGate",
]
