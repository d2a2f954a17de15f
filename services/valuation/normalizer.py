from collections import defaultdict
from typing import Dict, Iterable, List, Tuple, Union

from core.utils.exceptions import ValidationError
from .models import ItemDemand

BundleEntry = Union[ItemDemand, Tuple[int, int]]


def normalize_bundle(items: Iterable[BundleEntry]) -> Dict[int, int]:
    """
    Merge repeated items into one quantity per item ID.

    Quantities are summed, never overwritten. Zero quantities are kept.

    Raises:
        ValidationError: If a quantity is negative
    """
    demand: Dict[int, int] = defaultdict(int)
    for entry in items:
        if isinstance(entry, ItemDemand):
            item_id, quantity = entry.item_id, entry.quantity
        else:
            item_id, quantity = entry
        item_id, quantity = int(item_id), int(quantity)
        if quantity < 0:
            raise ValidationError(
                f"Quantity for item {item_id} must not be negative",
                field="quantity", value=quantity, expected_type="int >= 0",
            )
        demand[item_id] += quantity
    return dict(demand)


def to_demands(demand: Dict[int, int]) -> List[ItemDemand]:
    return [ItemDemand(item_id=item_id, quantity=qty) for item_id, qty in demand.items()]
