"""Fuzzy linkage between catalog item names and a tenant's stock records.

Three tiers are tried in order against the whole inventory before moving to
the next tier, so an exact name always beats an earlier substring hit:

1. exact, case-insensitive equality
2. substring containment in either direction ("oil" <-> "cooking oil")
3. keyword overlap: any catalog token of at least `min_keyword_length`
   characters occurs inside the inventory name

Within a tier the first inventory item (store order) wins.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar


class Named(Protocol):
    name: str


ItemT = TypeVar("ItemT", bound=Named)

DEFAULT_MIN_KEYWORD_LENGTH = 4


def _exact(catalog_name: str, inventory_name: str) -> bool:
    return catalog_name == inventory_name


def _contains(catalog_name: str, inventory_name: str) -> bool:
    return bool(inventory_name) and (
        catalog_name in inventory_name or inventory_name in catalog_name
    )


def _keyword_matcher(min_keyword_length: int) -> Callable[[str, str], bool]:
    def _keywords(catalog_name: str, inventory_name: str) -> bool:
        return any(
            len(token) >= min_keyword_length and token in inventory_name
            for token in catalog_name.split()
        )

    return _keywords


def match_inventory_item(
    catalog_name: str,
    inventory: Sequence[ItemT],
    min_keyword_length: int = DEFAULT_MIN_KEYWORD_LENGTH,
) -> ItemT | None:
    """Find the inventory item that best corresponds to a catalog item name.

    Args:
        catalog_name: Free-text item name from the festival catalog.
        inventory: The tenant's stock records.
        min_keyword_length: Shortest catalog token considered in tier 3.

    Returns:
        The matched item, or None when no tier matches.
    """
    wanted = catalog_name.strip().lower()
    if not wanted:
        return None

    lowered = [(item, item.name.strip().lower()) for item in inventory]
    tiers = (_exact, _contains, _keyword_matcher(min_keyword_length))

    for tier in tiers:
        for item, name in lowered:
            if tier(wanted, name):
                return item
    return None
