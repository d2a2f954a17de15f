import json

import pytest

from services.market_data.cache import MarketOrderCache
from tests.mocks.mock_market_data import JITA_REGION, make_order


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(test_settings, clock):
    return MarketOrderCache(test_settings, clock=clock)


@pytest.mark.asyncio
async def test_round_trip_preserves_orders(cache):
    orders = [make_order("5.01", 10, is_buy=False, type_id=34), make_order(4, 3, is_buy=True)]
    await cache.save_orders(34, JITA_REGION, orders)

    loaded = await cache.get_orders(34, JITA_REGION)

    assert [o.model_dump() for o in loaded] == [o.model_dump() for o in orders]


@pytest.mark.asyncio
async def test_file_layout(cache, test_settings, clock):
    await cache.save_orders(34, JITA_REGION, [make_order(5, 1, is_buy=False)])

    path = test_settings.cache_dir / f"market_orders_34_{JITA_REGION}.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["timestamp"] == clock.now
    assert payload["data"][0]["volume_remain"] == 1


@pytest.mark.asyncio
async def test_miss_returns_none(cache):
    await cache.initialize()
    assert await cache.get_orders(99, JITA_REGION) is None


@pytest.mark.asyncio
async def test_entries_expire_after_ttl(cache, clock, test_settings):
    await cache.save_orders(34, JITA_REGION, [make_order(5, 1, is_buy=False)])

    clock.now += test_settings.market_data.cache_ttl_seconds - 1
    assert await cache.get_orders(34, JITA_REGION) is not None

    clock.now += 1
    assert await cache.get_orders(34, JITA_REGION) is None


@pytest.mark.asyncio
async def test_corrupt_entry_is_a_miss(cache, test_settings):
    await cache.initialize()
    path = test_settings.cache_dir / f"market_orders_34_{JITA_REGION}.json"
    path.write_text("{not json", encoding="utf-8")

    assert await cache.get_orders(34, JITA_REGION) is None


@pytest.mark.asyncio
async def test_clear_removes_entries(cache):
    await cache.save_orders(34, JITA_REGION, [])
    await cache.save_orders(35, JITA_REGION, [])

    assert await cache.clear() == 2
    assert await cache.get_orders(34, JITA_REGION) is None


@pytest.mark.asyncio
async def test_undecodable_bytes_are_a_miss(cache, test_settings):
    await cache.initialize()
    path = test_settings.cache_dir / f"market_orders_34_{JITA_REGION}.json"
    path.write_bytes(b'\xff\xfe{"timestamp": 1}')

    assert await cache.get_orders(34, JITA_REGION) is None
