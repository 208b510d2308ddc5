"""API request and response models."""

from pydantic import BaseModel, Field

from supra.models.catalog import Dish, Restaurant
from supra.models.search import SelectionEntry


class DishResponse(BaseModel):
    """Dish as returned to API clients."""

    id: int
    restaurant_id: int
    name: str
    description: str
    price: float
    image_url: str
    ingredients: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)

    @classmethod
    def from_dish(cls, dish: Dish) -> "DishResponse":
        return cls(
            id=dish.id,
            restaurant_id=dish.restaurant_id,
            name=dish.name,
            description=dish.description,
            price=float(dish.price),
            image_url=dish.image_url,
            ingredients=dish.ingredients,
            tags=dish.tags,
            allergens=dish.allergens,
        )


class RestaurantResponse(BaseModel):
    """Restaurant with the dishes matched by a search."""

    id: int
    name: str
    address: str
    latitude: float
    longitude: float
    working_hours: str
    phone: str
    price_range: int
    atmosphere: list[str] = Field(default_factory=list)
    dishes: list[DishResponse] = Field(default_factory=list)

    @classmethod
    def from_restaurant(cls, restaurant: Restaurant) -> "RestaurantResponse":
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            address=restaurant.address,
            latitude=restaurant.latitude,
            longitude=restaurant.longitude,
            working_hours=restaurant.working_hours,
            phone=restaurant.phone,
            price_range=restaurant.price_range,
            atmosphere=restaurant.atmosphere,
            dishes=[DishResponse.from_dish(d) for d in restaurant.dishes],
        )


class ChatSearchRequest(BaseModel):
    """Conversational search request."""

    session_id: str = Field(..., min_length=8, max_length=64)
    user_input: str = Field(..., max_length=500)
    preferences: str | None = Field(default=None, max_length=500)
    limit: int = Field(default=10, ge=1, le=50)


class ChatSearchResponse(BaseModel):
    """Conversational search response."""

    session_id: str
    intent: str | None
    operation_performed: str | None
    restaurants: list[RestaurantResponse]
    selection: list[SelectionEntry]
    constraints: list[str]
    processing_time_ms: float


class SessionResponse(BaseModel):
    """Session state response."""

    session_id: str
    created_at: str
    last_activity: str
    selection: list[SelectionEntry]
    constraints: list[str]
    preferences: str
    conversation_length: int
