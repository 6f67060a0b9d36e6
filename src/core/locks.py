"""
Serializzazione per spedizione: guardia sugli acquisti e coalescenza delle quotazioni
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, Optional

import redis.asyncio as aioredis

from src.core.exceptions import ExceptionFactory
from src.core.settings import get_shipping_label_settings

logger = logging.getLogger(__name__)


class ShipmentLockManager:
    """
    Lock per spedizione a livello di processo, con lock distribuito Redis opzionale.

    - purchase_guard: al massimo un acquisto/refresh in volo per spedizione; una seconda
      chiamata concorrente viene rifiutata, non messa in coda.
    - coalesce: chiamanti concorrenti con la stessa chiave condividono un'unica chiamata in volo.
    """

    def __init__(self):
        self.settings = get_shipping_label_settings()
        self._lock_cache: Dict[str, asyncio.Lock] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._redis_client: Optional[aioredis.Redis] = None
        if self.settings.shipment_lock_backend == "redis":
            self._redis_client = aioredis.from_url(self.settings.redis_url)
            logger.info("Shipment locks backed by Redis")

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._lock_cache:
            self._lock_cache[key] = asyncio.Lock()
        return self._lock_cache[key]

    def is_locked(self, shipment_id: int) -> bool:
        lock = self._lock_cache.get(f"shipment:{shipment_id}")
        return lock is not None and lock.locked()

    async def try_acquire_distributed(self, key: str) -> bool:
        """Try to acquire distributed lock"""
        if not self._redis_client:
            return True  # Nessun Redis: istanza singola

        lock_key = f"lock:{key}"
        try:
            result = await self._redis_client.set(
                lock_key,
                "1",
                nx=True,
                ex=self.settings.shipment_lock_ttl_seconds
            )
            return result is not None
        except aioredis.RedisError as e:
            logger.error(f"Lock acquire error for {key}: {e}")
            return False

    async def release_distributed(self, key: str) -> None:
        if not self._redis_client:
            return
        try:
            await self._redis_client.delete(f"lock:{key}")
        except aioredis.RedisError as e:
            logger.error(f"Lock release error for {key}: {e}")

    @asynccontextmanager
    async def purchase_guard(self, shipment_id: int):
        """Acquisisce il lock della spedizione o rifiuta con PURCHASE_IN_PROGRESS"""
        key = f"shipment:{shipment_id}"
        lock = self._get_lock(key)
        # Nessun await tra il controllo e l'acquisizione: atomico nell'event loop
        if lock.locked():
            raise ExceptionFactory.purchase_in_progress(shipment_id)
        await lock.acquire()
        try:
            if not await self.try_acquire_distributed(key):
                raise ExceptionFactory.purchase_in_progress(shipment_id)
            try:
                yield
            finally:
                await self.release_distributed(key)
        finally:
            lock.release()

    async def coalesce(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Esegue factory() una sola volta per chiave tra chiamanti concorrenti"""
        future = self._inflight.get(key)
        if future is not None:
            logger.debug(f"Joining in-flight call for {key}")
            return await asyncio.shield(future)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Evita "exception was never retrieved" quando nessuno è in attesa
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(key, None)

    async def close(self) -> None:
        if self._redis_client:
            await self._redis_client.aclose()


@lru_cache()
def get_shipment_lock_manager() -> ShipmentLockManager:
    """Istanza di processo del lock manager"""
    return ShipmentLockManager()
