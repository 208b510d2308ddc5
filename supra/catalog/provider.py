"""Catalog providers: the read-only view of restaurants and dishes used by search."""

import json
from pathlib import Path
from typing import Any, Protocol

import asyncpg
import structlog
from pydantic import ValidationError

from supra.config import get_settings
from supra.models.catalog import Dish, Restaurant

logger = structlog.get_logger()


class CatalogProvider(Protocol):
    """Boundary to the relational store that owns restaurants and dishes."""

    async def list_restaurants_with_dishes(self) -> list[Restaurant]:
        ...

    async def restaurant_exists(self, restaurant_id: int) -> bool:
        ...


RESTAURANTS_SQL = """
    SELECT id, name, address, latitude, longitude, working_hours, phone,
           price_range, atmosphere
    FROM restaurants
    ORDER BY id
"""

DISHES_SQL = """
    SELECT id, restaurant_id, name, description, price, image_url,
           ingredients, tags, allergens
    FROM dishes
    ORDER BY restaurant_id, id
"""


def _json_list(value: Any) -> list[str]:
    """Decode a JSON column that asyncpg may hand back as text."""
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    return list(value)


class PostgresCatalogProvider:
    """Read the catalog from PostgreSQL."""

    def __init__(self, pool: asyncpg.Pool | None = None, dsn: str | None = None):
        self.pool = pool
        self._dsn = dsn or get_settings().postgres_dsn

    async def connect(self) -> None:
        """Connect to PostgreSQL."""
        if self.pool is None:
            self.pool = await asyncpg.create_pool(self._dsn, min_size=1, max_size=10)
            logger.info("catalog_provider_connected")

    async def close(self) -> None:
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None

    async def list_restaurants_with_dishes(self) -> list[Restaurant]:
        """Fetch every restaurant with its dishes nested."""
        if self.pool is None:
            await self.connect()

        async with self.pool.acquire() as conn:
            restaurant_rows = await conn.fetch(RESTAURANTS_SQL)
            dish_rows = await conn.fetch(DISHES_SQL)

        dishes_by_restaurant: dict[int, list[Dish]] = {}
        for row in dish_rows:
            dish = Dish(
                id=row["id"],
                restaurant_id=row["restaurant_id"],
                name=row["name"],
                description=row["description"] or "",
                price=row["price"],
                image_url=row["image_url"] or "",
                ingredients=_json_list(row["ingredients"]),
                tags=_json_list(row["tags"]),
                allergens=_json_list(row["allergens"]),
            )
            dishes_by_restaurant.setdefault(dish.restaurant_id, []).append(dish)

        restaurants = [
            Restaurant(
                id=row["id"],
                name=row["name"],
                address=row["address"],
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                working_hours=row["working_hours"],
                phone=row["phone"],
                price_range=row["price_range"],
                atmosphere=_json_list(row["atmosphere"]),
                dishes=dishes_by_restaurant.get(row["id"], []),
            )
            for row in restaurant_rows
        ]

        logger.info(
            "catalog_loaded",
            source="postgres",
            restaurant_count=len(restaurants),
            dish_count=len(dish_rows),
        )
        return restaurants

    async def restaurant_exists(self, restaurant_id: int) -> bool:
        """Check whether a restaurant id is live."""
        if self.pool is None:
            await self.connect()

        async with self.pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM restaurants WHERE id = $1", restaurant_id
            )
        return count > 0


class JsonCatalogProvider:
    """Serve the catalog from a JSON file of restaurants with nested dishes."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or get_settings().catalog_json_path)
        self._restaurants: list[Restaurant] = []

    def load(self) -> bool:
        """Load the catalog file.

        Returns:
            True on success. A missing or malformed file leaves the catalog
            empty and returns False.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._restaurants = [Restaurant.model_validate(item) for item in data]
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error("catalog_load_failed", path=str(self.path), error=str(e))
            self._restaurants = []
            return False

        logger.info(
            "catalog_loaded",
            source="json",
            path=str(self.path),
            restaurant_count=len(self._restaurants),
        )
        return True

    async def list_restaurants_with_dishes(self) -> list[Restaurant]:
        return [r.model_copy(deep=True) for r in self._restaurants]

    async def restaurant_exists(self, restaurant_id: int) -> bool:
        return any(r.id == restaurant_id for r in self._restaurants)


def get_catalog_provider() -> CatalogProvider:
    """Build the provider selected by settings."""
    settings = get_settings()
    if settings.catalog_source == "json":
        provider = JsonCatalogProvider(settings.catalog_json_path)
        provider.load()
        return provider
    return PostgresCatalogProvider()
