"""Data models for the dish search system."""

from supra.models.catalog import Dish, Restaurant
from supra.models.search import (
    BackendRequest,
    ImageDescriptor,
    ImageUpload,
    RawResponse,
    SearchOutcome,
    SearchRecord,
    SelectionEntry,
    SelectionResponse,
    TurnInterpretation,
)
from supra.models.state import (
    ConversationState,
    ConversationTurn,
    SelectionContext,
    SessionState,
)
from supra.models.api import (
    ChatSearchRequest,
    ChatSearchResponse,
    DishResponse,
    RestaurantResponse,
    SessionResponse,
)

__all__ = [
    # Catalog models
    "Dish",
    "Restaurant",
    # Search models
    "BackendRequest",
    "ImageDescriptor",
    "ImageUpload",
    "RawResponse",
    "SearchOutcome",
    "SearchRecord",
    "SelectionEntry",
    "SelectionResponse",
    "TurnInterpretation",
    # State models
    "ConversationState",
    "ConversationTurn",
    "SelectionContext",
    "SessionState",
    # API models
    "ChatSearchRequest",
    "ChatSearchResponse",
    "DishResponse",
    "RestaurantResponse",
    "SessionResponse",
]
