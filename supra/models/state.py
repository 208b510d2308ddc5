"""LangGraph state and session models."""

from datetime import datetime
from typing import Literal, TypedDict

from pydantic import BaseModel, Field

from supra.models.catalog import Restaurant
from supra.models.search import ImageUpload, IntentType, OperationType, SelectionEntry


class SelectionContext(BaseModel):
    """Selection set and standing constraints carried between turns."""

    entries: list[SelectionEntry] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)


class ConversationState(TypedDict):
    """LangGraph pipeline state for one conversation turn."""

    # Session
    session_id: str
    user_input: str
    image: ImageUpload | None
    preferences: str
    limit: int
    timestamp: str

    # Context loaded from the session
    context: SelectionContext

    # Interpretation
    intent: IntentType | None
    category: str | None
    candidates: list[SelectionEntry]
    constraints: list[str]
    lifted_constraints: list[str]

    # Policy output
    operation: OperationType | None
    catalog: list[Restaurant]
    restaurants: list[Restaurant]

    # Error handling
    error: str | None


class ConversationTurn(BaseModel):
    """A single turn in the conversation."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    intent: str | None = None
    operation: str | None = None


class SessionState(BaseModel):
    """Complete session state stored in Redis."""

    session_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_activity: datetime = Field(default_factory=datetime.utcnow)
    ttl_seconds: int = 86400  # 24 hours

    selection: SelectionContext = Field(default_factory=SelectionContext)
    conversation: list[ConversationTurn] = Field(default_factory=list)
    preferences: str = ""

    def add_user_turn(self, content: str) -> None:
        """Add a user message to conversation."""
        self.conversation.append(ConversationTurn(role="user", content=content))
        self.last_activity = datetime.utcnow()

    def add_assistant_turn(
        self,
        content: str,
        intent: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Add an assistant response to conversation."""
        self.conversation.append(
            ConversationTurn(
                role="assistant",
                content=content,
                intent=intent,
                operation=operation,
            )
        )
        self.last_activity = datetime.utcnow()

    def get_recent_conversation(self, max_turns: int = 5) -> list[ConversationTurn]:
        """Get recent conversation turns."""
        return self.conversation[-max_turns * 2:] if self.conversation else []
