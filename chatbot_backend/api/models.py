"""
Pydantic models used for request/response validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation. Request models accept the
camelCase keys sent by the web client as well as snake_case; responses are
serialised with the camelCase aliases (``model_dump(by_alias=True)``).
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Attachment(BaseModel):
    """Reference to a previously uploaded file."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(..., description="Stored filename.", examples=["1718000000-photo.png"])
    original_name: str = Field(..., alias="originalName", description="Filename as provided by the client.", examples=["photo.png"])
    mime_type: str = Field(..., alias="mimeType", description="MIME type of the file.", examples=["image/png"])
    size: int = Field(..., ge=0, description="Size in bytes.")
    url: str = Field(..., description="Retrieval URL relative to the public directory.", examples=["/uploads/1718000000-photo.png"])

    @property
    def is_image(self) -> bool:
        return self.mime_type.lower().startswith("image/")


class Turn(BaseModel):
    """
    One message of a conversation.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role: Literal["user", "model"]
    """Author of the turn: the end user or the upstream model."""
    content: str = ""
    """Text of the turn. May be empty when attachments are present."""
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


class FeatureOptions(BaseModel):
    """
    Per-message switches that control prompt augmentation.
    """
    model_config = ConfigDict(populate_by_name=True)

    web_search: bool = Field(True, alias="webSearch")
    """Allow web search context and news digests."""
    date_grounding: bool = Field(True, alias="dateGrounding")
    """Prepend the authoritative current date/time and answer date questions locally."""
    code_mode: bool = Field(False, alias="codeMode")
    """Ask the model for code-focused answers."""


class NewMessage(BaseModel):
    """
    Represents a new user message posted to a conversation.
    """
    content: str = ""
    """The text content of the message."""
    attachments: List[Attachment] = Field(default_factory=list)
    """Files uploaded beforehand and referenced by this message."""
    features: FeatureOptions = Field(default_factory=FeatureOptions)


class ConversationCreationDetails(BaseModel):
    """
    Represents details accepted when creating a new conversation.
    """
    title: Optional[str] = None
    """A human-readable title; blank means "New Chat"."""
    model: Optional[str] = None
    """Model identifier; blank means the configured default model."""


class UpdateConversationDetails(BaseModel):
    """
    Represents details accepted when updating an existing conversation.
    Blank values are ignored.
    """
    title: Optional[str] = None
    model: Optional[str] = None


class ConversationRecord(BaseModel):
    """
    A full conversation, detached from the database session.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    user_id: str
    title: str
    model: str
    turns: List[Turn] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ConversationSummary(BaseModel):
    """Conversation listing entry (turns omitted)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    title: str
    model: str
    created_at: datetime
    updated_at: datetime


class SessionUser(BaseModel):
    """
    Identity extracted from a verified session token.
    """
    id: str
    """Opaque owner identifier (``sub`` claim)."""
    name: str = ""
    email: str = ""


class ModelInfo(BaseModel):
    """An entry of the model catalogue."""
    id: str
    name: str
    description: str


class SearchResult(BaseModel):
    """A single web search hit."""
    title: str
    snippet: str
    url: str


class NewsItem(BaseModel):
    """A single headline from the news feed."""
    title: str
    link: str
    published_at: str = ""
    """Raw publication date as found in the feed."""
    source: str = ""
    """Publisher name taken from the end of the headline, if any."""


class ImagePayload(BaseModel):
    """Base64-encoded image bytes ready to be sent to a vision model."""
    data: str
    mime_type: str
