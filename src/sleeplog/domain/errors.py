"""Exception hierarchy shared by every layer."""


class SleepLogError(Exception):
    """Base class for expected sleeplog failures."""


class LedgerError(SleepLogError):
    """The event ledger could not be read or written."""


class DocumentStoreError(SleepLogError):
    """A persisted JSON document is unreadable or could not be written."""


class ReasoningError(SleepLogError):
    """The reasoning provider failed or returned an unusable answer."""


class DeliveryError(SleepLogError):
    """No delivery transport accepted the notification."""


class AuthorizationError(SleepLogError):
    """The request carried a missing or wrong API key."""
