"""
Trade hub registry.

A trade hub is a (region, system) pair: the region selects which regional
order book is downloaded, the system filters the orders that are actually
reachable at the hub.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class TradeHub(BaseModel):
    """A trading location used to scope a valuation."""

    model_config = ConfigDict(frozen=True)

    name: str
    region_id: int
    system_id: int
    region_name: Optional[str] = None


TRADE_HUBS: Dict[str, TradeHub] = {
    "jita": TradeHub(name="jita", region_id=10000002, system_id=30000142, region_name="The Forge"),
    "amarr": TradeHub(name="amarr", region_id=10000043, system_id=30002187, region_name="Domain"),
    "dodixie": TradeHub(name="dodixie", region_id=10000032, system_id=30002659, region_name="Sinq Laison"),
    "rens": TradeHub(name="rens", region_id=10000030, system_id=30002510, region_name="Heimatar"),
    "hek": TradeHub(name="hek", region_id=10000042, system_id=30002053, region_name="Metropolis"),
}

DEFAULT_HUB = "jita"


def resolve_trade_hub(name: str) -> Optional[TradeHub]:
    """
    Resolve a hub name to its configuration.

    Matching is case-insensitive; an unambiguous prefix ("jit") also matches.

    Returns:
        The TradeHub or None if the name is unknown
    """
    name_lower = (name or "").lower().strip()
    if not name_lower:
        return None

    if name_lower in TRADE_HUBS:
        return TRADE_HUBS[name_lower]

    matches = [hub for hub_name, hub in TRADE_HUBS.items() if hub_name.startswith(name_lower)]
    if len(matches) == 1:
        return matches[0]
    return None
