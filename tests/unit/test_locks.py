"""
Test per ShipmentLockManager: guardia di acquisto e coalescenza
"""
import asyncio
import pytest
from src.core.exceptions import InvalidStateException
from src.core.locks import ShipmentLockManager


@pytest.mark.unit
class TestPurchaseGuard:

    @pytest.mark.asyncio
    async def test_second_caller_is_rejected(self):
        manager = ShipmentLockManager()

        async with manager.purchase_guard(1):
            assert manager.is_locked(1) is True
            with pytest.raises(InvalidStateException) as exc_info:
                async with manager.purchase_guard(1):
                    pass
            assert exc_info.value.error_code == "PURCHASE_IN_PROGRESS"

        assert manager.is_locked(1) is False

    @pytest.mark.asyncio
    async def test_other_shipments_are_independent(self):
        manager = ShipmentLockManager()

        async with manager.purchase_guard(1):
            async with manager.purchase_guard(2):
                assert manager.is_locked(2) is True

    @pytest.mark.asyncio
    async def test_released_after_error(self):
        manager = ShipmentLockManager()

        with pytest.raises(RuntimeError):
            async with manager.purchase_guard(1):
                raise RuntimeError("boom")

        assert manager.is_locked(1) is False


@pytest.mark.unit
class TestCoalesce:

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_result(self):
        manager = ShipmentLockManager()
        gate = asyncio.Event()
        calls = []

        async def factory():
            calls.append(1)
            await gate.wait()
            return {"value": 42}

        first = asyncio.create_task(manager.coalesce("key", factory))
        second = asyncio.create_task(manager.coalesce("key", factory))
        await asyncio.sleep(0)
        gate.set()

        assert await first == {"value": 42}
        assert await second == {"value": 42}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_error_reaches_every_caller(self):
        manager = ShipmentLockManager()
        gate = asyncio.Event()

        async def factory():
            await gate.wait()
            raise ValueError("provider down")

        first = asyncio.create_task(manager.coalesce("key", factory))
        second = asyncio.create_task(manager.coalesce("key", factory))
        await asyncio.sleep(0)
        gate.set()

        results = await asyncio.gather(first, second, return_exceptions=True)
        assert all(isinstance(result, ValueError) for result in results)

    @pytest.mark.asyncio
    async def test_sequential_calls_are_not_shared(self):
        manager = ShipmentLockManager()
        calls = []

        async def factory():
            calls.append(1)
            return len(calls)

        assert await manager.coalesce("key", factory) == 1
        assert await manager.coalesce("key", factory) == 2
