from typing import List, Optional

from pydantic import BaseModel

from imagekeeper.domain.collection import Collection
from imagekeeper.domain.image import Image, ImagePatch
from imagekeeper.domain.types import IdList


class ImageEdit(ImagePatch):
    """Image edit from a client: field changes plus the full set of wanted collections.

    ``collections`` is reconciled against the image's current memberships by
    linking and unlinking. Leaving it out keeps the memberships as they are.
    """

    collections: Optional[IdList] = None


class CollectionSummary(Collection):
    image_count: int
    cover_url: Optional[str] = None


class UploadResult(BaseModel):
    images: List[Image]
    skipped: List[str] = []
