"""Catalog models for restaurants and their dishes."""

from decimal import Decimal

from pydantic import BaseModel, Field


class Dish(BaseModel):
    """A dish served by exactly one restaurant."""

    id: int
    restaurant_id: int = Field(alias="restaurantId")
    name: str
    description: str = ""
    price: Decimal = Field(ge=0)
    image_url: str = Field(default="", alias="imageUrl")
    ingredients: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class Restaurant(BaseModel):
    """Restaurant with its nested dishes."""

    id: int
    name: str
    address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    working_hours: str = Field(default="", alias="workingHours")
    phone: str = ""
    price_range: int = Field(default=1, ge=1, le=4, alias="priceRange")
    atmosphere: list[str] = Field(default_factory=list)
    dishes: list[Dish] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def with_dishes(self, dishes: list[Dish]) -> "Restaurant":
        """Return a copy of this restaurant carrying only the given dishes."""
        return self.model_copy(update={"dishes": dishes})
