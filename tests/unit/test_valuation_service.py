import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from core.trading.hubs import TradeHub
from core.utils.exceptions import HubResolutionError, ValidationError
from services.valuation.service import ServiceStatus, ValuationService
from tests.mocks.mock_market_data import JITA_REGION, JITA_SYSTEM, AMARR_SYSTEM, make_order

ITEM_A = 34
ITEM_B = 35


@pytest.fixture
def full_liquidity_books():
    return {
        # 10 units of A sell into bids for exactly 1000
        ITEM_A: [
            make_order(100, 6, is_buy=True),
            make_order(100, 4, is_buy=True),
            make_order(110, 50, is_buy=False),
        ],
    }


@pytest.mark.asyncio
async def test_end_to_end_partial_liquidity(test_settings, mock_provider_factory, full_liquidity_books):
    provider = mock_provider_factory(books=full_liquidity_books)
    service = ValuationService(test_settings, provider)

    result = await service.valuate([(ITEM_A, 10), (ITEM_B, 5)], hub="jita")

    assert result.total_buy_execution == Decimal("1000")
    assert result.total_sell_execution == Decimal("1100")
    assert result.total_mid_execution == Decimal("1050")
    assert result.has_insufficient_liquidity is True
    assert result.items_without_orders == 1
    assert {(item, region) for item, region, _ in provider.calls} == {
        (ITEM_A, JITA_REGION), (ITEM_B, JITA_REGION)
    }


@pytest.mark.asyncio
async def test_duplicate_entries_are_merged_before_fetching(test_settings, mock_provider_factory,
                                                            full_liquidity_books):
    provider = mock_provider_factory(books=full_liquidity_books)
    service = ValuationService(test_settings, provider)

    result = await service.valuate([(ITEM_A, 4), (ITEM_A, 6)])

    assert len(provider.calls) == 1
    assert result.total_buy_execution == Decimal("1000")
    assert result.has_insufficient_liquidity is False


@pytest.mark.asyncio
async def test_failed_fetch_is_absorbed(test_settings, mock_provider_factory, full_liquidity_books):
    provider = mock_provider_factory(books=full_liquidity_books, failing={ITEM_A})
    service = ValuationService(test_settings, provider)

    result = await service.valuate([(ITEM_A, 10)])

    assert result.total_buy_execution == 0
    assert result.has_insufficient_liquidity is True


@pytest.mark.asyncio
async def test_discount_applied_and_retained(test_settings, mock_provider_factory, full_liquidity_books):
    service = ValuationService(test_settings, mock_provider_factory(books=full_liquidity_books))

    halved = await service.valuate([(ITEM_A, 10)], discount_percent=50)
    assert halved.total_buy_execution == Decimal("500")
    assert halved.discount_percent == 50

    # rejected input keeps the last accepted discount
    still_halved = await service.valuate([(ITEM_A, 10)], discount_percent=150000)
    assert still_halved.total_buy_execution == Decimal("500")
    assert still_halved.discount_percent == 50


@pytest.mark.asyncio
async def test_force_refresh_defaults_from_settings(test_settings, mock_provider_factory):
    provider = mock_provider_factory()
    service = ValuationService(test_settings, provider)

    await service.valuate([(ITEM_A, 1)])
    await service.valuate([(ITEM_A, 1)], force_refresh=False)

    assert [call[2] for call in provider.calls] == [True, False]


@pytest.mark.asyncio
async def test_explicit_trade_hub(test_settings, mock_provider_factory):
    books = {ITEM_A: [make_order(10, 5, is_buy=True, system_id=AMARR_SYSTEM),
                      make_order(99, 5, is_buy=True, system_id=JITA_SYSTEM)]}
    provider = mock_provider_factory(books=books)
    service = ValuationService(test_settings, provider)
    hub = TradeHub(name="amarr-test", region_id=JITA_REGION, system_id=AMARR_SYSTEM)

    result = await service.valuate([(ITEM_A, 5)], hub=hub)

    assert result.total_buy_execution == Decimal("50")


@pytest.mark.asyncio
async def test_unknown_hub_is_fatal(test_settings, mock_provider_factory):
    provider = mock_provider_factory()
    service = ValuationService(test_settings, provider)

    with pytest.raises(HubResolutionError):
        await service.valuate([(ITEM_A, 1)], hub="nowhere")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_negative_quantity_is_fatal(test_settings, mock_provider_factory):
    service = ValuationService(test_settings, mock_provider_factory())
    with pytest.raises(ValidationError):
        await service.valuate([(ITEM_A, -3)])


@pytest.mark.asyncio
async def test_cancelled_request_produces_no_valuation(test_settings, mock_provider_factory,
                                                       full_liquidity_books):
    gate = asyncio.Event()
    provider = mock_provider_factory(books=full_liquidity_books, gate=gate)
    service = ValuationService(test_settings, provider)

    task = asyncio.create_task(service.valuate([(ITEM_A, 10), (ITEM_B, 5)], discount_percent=10))
    await provider.started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert provider.in_flight == 0

    # a later request sees none of the cancelled one's state
    gate.set()
    result = await service.valuate([(ITEM_A, 10)])
    assert result.total_buy_execution == Decimal("1000")
    assert result.discount_percent == 100
    assert result.has_insufficient_liquidity is False


@pytest.mark.asyncio
async def test_lifecycle_opens_and_closes_provider(test_settings, mock_provider_factory):
    provider = mock_provider_factory()
    events = []

    async def start():
        events.append("start")

    async def close():
        events.append("close")

    provider.start = start
    provider.close = close

    async with ValuationService(test_settings, provider) as service:
        assert service.status == ServiceStatus.RUNNING
    assert service.status == ServiceStatus.STOPPED
    assert events == ["start", "close"]


@pytest.mark.asyncio
async def test_injected_fetcher_receives_merged_demand(test_settings, mock_provider_factory):
    fetcher = AsyncMock()
    fetcher.fetch_all.return_value = {ITEM_A: [make_order(7, 100, is_buy=False)]}
    service = ValuationService(test_settings, mock_provider_factory(), fetcher=fetcher)

    result = await service.valuate([(ITEM_A, 2), (ITEM_A, 1)], hub="jita", force_refresh=False)

    fetcher.fetch_all.assert_awaited_once()
    args, kwargs = fetcher.fetch_all.call_args
    assert list(args[0]) == [ITEM_A]
    assert args[1] == JITA_REGION
    assert kwargs == {"force_refresh": False}
    assert result.total_sell_execution == Decimal("21")
