"""Map untrusted backend selections back onto the authoritative catalog."""

from typing import Iterable, Sequence

import structlog

from supra.metrics import record_dropped_entries
from supra.models.catalog import Restaurant
from supra.models.search import (
    SearchOutcome,
    SearchRecord,
    SelectionEntry,
    SelectionResponse,
)

logger = structlog.get_logger()


def _selection_entries(
    selection: SearchOutcome | SelectionResponse | None,
) -> list[SelectionEntry]:
    if selection is None:
        return []
    if isinstance(selection, SearchOutcome):
        if selection.status != "success" or selection.results is None:
            return []
    return list(selection.results or [])


def reconcile(
    selection: SearchOutcome | SelectionResponse | None,
    catalog: Iterable[Restaurant],
) -> list[Restaurant]:
    """Prune the live catalog down to the dishes the backend selected.

    Entries that do not resolve to a live (restaurant, dish) pair are dropped,
    and no (restaurant_id, dish_name) key is emitted twice. Restaurants left
    without any matched dish are omitted. Never raises.

    Args:
        selection: Orchestrator outcome or parsed backend response
        catalog: Live restaurants with nested dishes (ground truth)

    Returns:
        Copies of the matched restaurants carrying only matched dishes,
        in catalog order
    """
    entries = _selection_entries(selection)
    if not entries:
        return []

    requested_restaurants = {entry.restaurant_id for entry in entries}
    requested_keys = {entry.key for entry in entries}

    matched: list[Restaurant] = []
    seen: set[tuple[str, str]] = set()

    for restaurant in catalog:
        restaurant_id = str(restaurant.id)
        if restaurant_id not in requested_restaurants:
            continue

        dishes = []
        for dish in restaurant.dishes:
            key = (restaurant_id, dish.name)
            if key in requested_keys and key not in seen:
                seen.add(key)
                dishes.append(dish)

        if dishes:
            matched.append(restaurant.with_dishes(dishes))

    dropped = len(requested_keys - seen)
    if dropped:
        record_dropped_entries(dropped)
        logger.debug(
            "selection_entries_dropped",
            dropped=dropped,
            requested=len(requested_keys),
        )

    return matched


def resolve_entries(
    entries: Sequence[SelectionEntry],
    records: Sequence[SearchRecord],
    category: str | None = None,
) -> list[SelectionEntry]:
    """Replace backend entries with their catalog records, deduplicated.

    Names and prices come from the catalog, never from the backend. Entries
    with no matching record are dropped.
    """
    by_key = {record.key: record for record in records}
    resolved: list[SelectionEntry] = []
    seen: set[tuple[str, str]] = set()

    for entry in entries:
        record = by_key.get(entry.key)
        if record is None or entry.key in seen:
            continue
        seen.add(entry.key)
        resolved.append(SelectionEntry.from_record(record, entry.category or category))

    dropped = len(entries) - len(resolved)
    if dropped:
        record_dropped_entries(dropped)
        logger.debug("unresolved_entries_dropped", dropped=dropped)

    return resolved
