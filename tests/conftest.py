"""Shared fixtures."""

import pytest

from supra.models.catalog import Dish, Restaurant


def make_dish(dish_id, restaurant_id, name, price, ingredients=None, allergens=None) -> Dish:
    return Dish(
        id=dish_id,
        restaurant_id=restaurant_id,
        name=name,
        price=price,
        ingredients=ingredients or [],
        allergens=allergens or [],
    )


@pytest.fixture
def sample_catalog() -> list[Restaurant]:
    """Two restaurants sharing a dish name, with allergens on some dishes."""
    return [
        Restaurant(
            id=11,
            name="Sakhli",
            dishes=[
                make_dish(1, 11, "Khachapuri", 15.0, ["flour", "sulguni"], ["gluten", "dairy"]),
                make_dish(2, 11, "Beef Khinkali", 1.5, ["flour", "beef"], ["gluten"]),
                make_dish(3, 11, "Pork Khinkali", 1.4, ["flour", "pork"], ["gluten"]),
            ],
        ),
        Restaurant(
            id=12,
            name="Supra",
            dishes=[
                make_dish(4, 12, "Beef Khinkali", 1.6, ["flour", "beef"], ["gluten"]),
                make_dish(5, 12, "Churchkhela", 4.0, ["walnut", "grape juice"], ["nuts"]),
                make_dish(6, 12, "Tarkhuna Lemonade", 3.0, ["tarragon", "sugar"]),
            ],
        ),
    ]

