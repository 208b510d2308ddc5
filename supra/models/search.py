"""Search records, backend request/response and orchestration result models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

OperationType = Literal["added", "filtered", "replaced", "removed", "no_change"]
IntentType = Literal["explore", "select", "add", "remove", "replace", "query"]

OPERATIONS: tuple[str, ...] = ("added", "filtered", "replaced", "removed", "no_change")


class SearchRecord(BaseModel):
    """Flattened (restaurant, dish) pair sent to the inference backend."""

    model_config = ConfigDict(frozen=True)

    restaurant_id: str
    restaurant_name: str
    dish_name: str
    dish_price: float

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key."""
        return (self.restaurant_id, self.dish_name)


class SelectionEntry(BaseModel):
    """One dish in the selection returned by the backend.

    Parsed leniently: the backend is untrusted and tends to return numeric
    ids or string prices.
    """

    restaurant_id: str
    restaurant_name: str = ""
    dish_name: str
    dish_price: float = 0.0
    category: str | None = None

    @field_validator("restaurant_id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

    @field_validator("dish_price", mode="before")
    @classmethod
    def default_price(cls, value):
        return 0.0 if value is None or value == "" else value

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key."""
        return (self.restaurant_id, self.dish_name)

    @classmethod
    def from_record(cls, record: SearchRecord, category: str | None = None) -> "SelectionEntry":
        """Build an entry from an authoritative catalog record."""
        return cls(
            restaurant_id=record.restaurant_id,
            restaurant_name=record.restaurant_name,
            dish_name=record.dish_name,
            dish_price=record.dish_price,
            category=category,
        )


class SelectionResponse(BaseModel):
    """Validated backend answer for a selection search."""

    results: list[SelectionEntry]
    operation_performed: OperationType | None = None

    @field_validator("operation_performed", mode="before")
    @classmethod
    def known_operation(cls, value):
        # Optional tag: unknown classifiers are dropped instead of failing the turn
        if isinstance(value, str) and value.strip().lower() in OPERATIONS:
            return value.strip().lower()
        return None


class TurnInterpretation(BaseModel):
    """Backend classification of one conversation turn."""

    intent: IntentType
    category: str | None = None
    results: list[SelectionEntry] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    lifted_constraints: list[str] = Field(default_factory=list)

    @field_validator("intent", mode="before")
    @classmethod
    def normalize_intent(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("constraints", "lifted_constraints", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return [] if value is None else value


class SearchOutcome(BaseModel):
    """Result of one orchestration call; never raised, always returned."""

    status: Literal["success", "error"]
    results: list[SelectionEntry] | None = None
    operation_performed: OperationType | None = None
    message: str | None = None

    @classmethod
    def success(cls, response: SelectionResponse) -> "SearchOutcome":
        return cls(
            status="success",
            results=response.results,
            operation_performed=response.operation_performed,
        )

    @classmethod
    def error(cls, message: str) -> "SearchOutcome":
        return cls(status="error", message=message or "unknown error")


class ImageDescriptor(BaseModel):
    """Base64 image payload with a MIME type derived from the file extension."""

    model_config = ConfigDict(frozen=True)

    data: str
    mime_type: str

    @property
    def data_url(self) -> str:
        """Data URL form accepted by multimodal chat APIs."""
        return f"data:{self.mime_type};base64,{self.data}"


class ImageUpload(BaseModel):
    """Uploaded image buffer that has not been written to disk yet."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    filename: str = "upload.jpg"


class BackendRequest(BaseModel):
    """Structured request for the generative inference backend."""

    model_config = ConfigDict(frozen=True)

    model: str
    contents: list[ImageDescriptor | str]
    response_format: Literal["json"] = "json"
    temperature: float = 0.1

    @property
    def image(self) -> ImageDescriptor | None:
        for part in self.contents:
            if isinstance(part, ImageDescriptor):
                return part
        return None

    @property
    def instruction_text(self) -> str:
        return "\n".join(part for part in self.contents if isinstance(part, str))


class RawResponse(BaseModel):
    """Unparsed text returned by the backend."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
