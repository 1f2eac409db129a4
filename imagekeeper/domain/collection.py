"""Collection domain models."""

from typing import Optional

from pydantic import BaseModel, field_validator

from imagekeeper.domain.types import IdList, RequiredName, UtcDatetime, non_blank_name


class NewCollection(BaseModel):
    """Payload for creating a collection. The name is trimmed and must not be blank."""

    name: RequiredName
    description: Optional[str] = None

    model_config = {"extra": "forbid"}


class Collection(NewCollection):
    """Represents a named group of images.

    Attributes:
        id: Unique identifier generated when the collection was created.
        name: Display name, never blank.
        description: Optional free text.
        created_at: Creation time. Never changes afterwards.
        images: Ids of the member images in the order they were linked.
    """

    id: str
    created_at: UtcDatetime
    images: IdList = []

    model_config = {"extra": "ignore"}


class CollectionPatch(BaseModel):
    """Partial update for a collection. Only fields that were explicitly set are applied."""

    name: Optional[str] = None
    description: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> str:
        # Runs only when the caller sets the field, so an explicit None is rejected too
        return non_blank_name(value)
