"""Image domain models."""

from typing import Optional

from pydantic import BaseModel

from imagekeeper.domain.types import IdList, UtcDatetime


class NewImage(BaseModel):
    """Payload for creating an image.

    Attributes:
        name: Display name, usually the uploaded filename without its extension.
        description: Free-text annotation.
        url: Source reference, either a plain URL or a ``data:`` URL.
        date: Optional user-supplied date for the picture.
        collections: Initial collection ids. These are stored as given and are
            not linked from the collection side.
        file_size: Size of the uploaded file in bytes.
        file_type: MIME type of the uploaded file.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    url: str
    date: Optional[UtcDatetime] = None
    collections: IdList = []
    file_size: Optional[int] = None
    file_type: Optional[str] = None

    model_config = {"extra": "forbid"}


class Image(NewImage):
    """Represents a stored image.

    Attributes:
        id: Unique identifier generated when the image was added.
        upload_date: When the image was added. Never changes afterwards.
    """

    id: str
    upload_date: UtcDatetime

    model_config = {"extra": "ignore"}


class ImagePatch(BaseModel):
    """Partial update for an image. Only fields that were explicitly set are applied.

    Membership changes go through the repository's link operations instead.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    date: Optional[UtcDatetime] = None

    model_config = {"extra": "forbid"}
