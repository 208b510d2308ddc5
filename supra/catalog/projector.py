"""Flatten the restaurant catalog into search records."""

from typing import Iterable, Iterator

from supra.models.catalog import Restaurant
from supra.models.search import SearchRecord


def iter_records(catalog: Iterable[Restaurant]) -> Iterator[SearchRecord]:
    """Yield one SearchRecord per (restaurant, dish) pair in catalog order."""
    for restaurant in catalog:
        restaurant_id = str(restaurant.id)
        for dish in restaurant.dishes:
            yield SearchRecord(
                restaurant_id=restaurant_id,
                restaurant_name=restaurant.name,
                dish_name=dish.name,
                dish_price=float(dish.price),
            )


def project(catalog: Iterable[Restaurant]) -> list[SearchRecord]:
    """Project the live catalog into the flat list sent to the backend.

    No filtering and no reordering: the backend does the matching, so the
    whole catalog is always in scope.
    """
    return list(iter_records(catalog))


def records_to_json(records: Iterable[SearchRecord]) -> list[dict]:
    """Plain dicts for prompt serialization."""
    return [record.model_dump() for record in records]
