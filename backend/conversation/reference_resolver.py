"""
Resolve free-text listing references against the last shown listings.

Users refer back to listings in many ways: "number 3", "the first one",
"70 Phillips", "the cheapest". resolve_reference() tries each strategy in a
fixed order and returns the listing ID of the first match.
"""

import re
from typing import Sequence

from models.conversation import ShownProperty
from models.types import ListingID
from shared.utils import parse_price

ORDINALS = {
    "first": 1,
    "1st": 1,
    "second": 2,
    "2nd": 2,
    "third": 3,
    "3rd": 3,
    "fourth": 4,
    "4th": 4,
    "fifth": 5,
    "5th": 5,
}

CHEAPEST_PHRASES = ("cheapest", "lowest price")
MOST_EXPENSIVE_PHRASES = ("most expensive", "highest price")

_NUMBER_PREFIX = re.compile(r"#|number\s*")


def resolve_reference(
    reference: str | None, shown_properties: Sequence[ShownProperty]
) -> ListingID | None:
    """
    Map a user reference to a previously shown listing ID.

    Matching is case-insensitive and tried in priority order:
    numeric index, ordinal word, address substring, price superlative.

    Args:
        reference: User phrase (e.g., "5", "#5", "first", "70 Phillips", "cheapest")
        shown_properties: Listings from the last record_shown_properties() call

    Returns:
        Listing ID of the matched property, or None if nothing matches
    """
    if not shown_properties or not reference:
        return None

    reference = reference.strip().lower()
    if not reference:
        return None

    for strategy in (_match_index, _match_ordinal, _match_address, _match_price):
        matched = strategy(reference, shown_properties)
        if matched is not None:
            return matched.listing_id

    return None


def _find_by_index(
    index: int, shown_properties: Sequence[ShownProperty]
) -> ShownProperty | None:
    for prop in shown_properties:
        if prop.index == index:
            return prop
    return None


def _match_index(
    reference: str, shown_properties: Sequence[ShownProperty]
) -> ShownProperty | None:
    cleaned = _NUMBER_PREFIX.sub("", reference).strip()
    try:
        index = int(cleaned)
    except ValueError:
        return None
    return _find_by_index(index, shown_properties)


def _match_ordinal(
    reference: str, shown_properties: Sequence[ShownProperty]
) -> ShownProperty | None:
    if reference == "last":
        return _find_by_index(len(shown_properties), shown_properties)
    index = ORDINALS.get(reference)
    if index is None:
        return None
    return _find_by_index(index, shown_properties)


def _match_address(
    reference: str, shown_properties: Sequence[ShownProperty]
) -> ShownProperty | None:
    for prop in shown_properties:
        address = (prop.address or "").lower()
        street = (prop.street or "").lower()
        if address and reference in address:
            return prop
        if street and reference in street:
            return prop
    return None


def _match_price(
    reference: str, shown_properties: Sequence[ShownProperty]
) -> ShownProperty | None:
    if reference in CHEAPEST_PHRASES:
        pick_lower = True
    elif reference in MOST_EXPENSIVE_PHRASES:
        pick_lower = False
    else:
        return None

    best: ShownProperty | None = None
    best_price: float | None = None
    for prop in shown_properties:
        price = parse_price(prop.price)
        if price is None:
            continue
        # Strict comparison keeps the first listing on ties
        if best_price is None or (price < best_price if pick_lower else price > best_price):
            best, best_price = prop, price
    return best
