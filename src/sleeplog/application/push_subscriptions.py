"""
Bounded registry of Web Push endpoints.

Endpoints are unique; when the collection outgrows its limit the oldest
entries are evicted first. Every mutation persists the full collection.
"""

import asyncio
import logging

from sleeplog.domain.constants import MAX_SUBSCRIPTIONS
from sleeplog.domain.ports import DocumentStore
from sleeplog.domain.push import PushSubscription

logger = logging.getLogger(__name__)


class PushSubscriptionStore:
    def __init__(
        self,
        store: DocumentStore[PushSubscription],
        max_subscriptions: int = MAX_SUBSCRIPTIONS,
    ):
        self._store = store
        self.max_subscriptions = max_subscriptions
        self._cache: list[PushSubscription] | None = None
        self._lock = asyncio.Lock()

    async def _load(self) -> list[PushSubscription]:
        if self._cache is not None:
            return self._cache
        try:
            self._cache = await self._store.read()
        except Exception as e:
            logger.warning(f"Push subscriptions unreadable, starting empty: {e}")
            self._cache = []
        return self._cache

    async def _save(self, subscriptions: list[PushSubscription]) -> None:
        await self._store.write(subscriptions)
        self._cache = subscriptions

    async def list(self) -> list[PushSubscription]:
        return list(await self._load())

    async def add(self, subscription: PushSubscription) -> None:
        """
        Insert or refresh a subscription.

        An existing endpoint keeps its position; a new one is appended. Oldest
        entries are evicted while over the limit.
        """
        async with self._lock:
            subscriptions = list(await self._load())

            for i, existing in enumerate(subscriptions):
                if existing.endpoint == subscription.endpoint:
                    subscriptions[i] = subscription
                    break
            else:
                subscriptions.append(subscription)

            evicted = 0
            while len(subscriptions) > self.max_subscriptions:
                subscriptions.pop(0)
                evicted += 1
            if evicted:
                logger.info(f"Evicted {evicted} oldest push subscription(s)")

            await self._save(subscriptions)

    async def remove(self, endpoint: str) -> None:
        async with self._lock:
            subscriptions = await self._load()
            await self._save([s for s in subscriptions if s.endpoint != endpoint])

    async def remove_by_index(self, index: int) -> None:
        async with self._lock:
            subscriptions = list(await self._load())
            if not 0 <= index < len(subscriptions):
                return
            del subscriptions[index]
            await self._save(subscriptions)
