"""Repository for images, collections and the links between them."""

import locale
import secrets
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from imagekeeper.domain.collection import Collection, CollectionPatch, NewCollection
from imagekeeper.domain.image import Image, ImagePatch, NewImage
from imagekeeper.domain.types import utcnow
from imagekeeper.errors import StorageError
from imagekeeper.storage.base import KeyValueStore

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

_images_adapter = TypeAdapter(List[Image])
_collections_adapter = TypeAdapter(List[Collection])

RecordT = TypeVar("RecordT", Image, Collection)


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_unique_id() -> str:
    """Generate an id from the current time in milliseconds plus a random suffix.

    Both parts are base 36. The 52 random bits keep ids minted within the same
    millisecond apart.
    """
    prefix = _to_base36(time.time_ns() // 1_000_000)
    suffix = _to_base36(secrets.randbits(52)).rjust(11, "0")
    return prefix + suffix


def search_images(images: Iterable[Image], query: str) -> List[Image]:
    """Filter images whose name or description contains the query, ignoring case.

    A blank query matches every image.
    """
    images = list(images)
    if not query.strip():
        return images

    needle = query.casefold()
    return [
        image
        for image in images
        if (image.name and needle in image.name.casefold())
        or (image.description and needle in image.description.casefold())
    ]


def _collation_key(image: Image) -> str:
    # strxfrm rejects embedded null characters
    return locale.strxfrm((image.name or "").casefold().replace("\x00", ""))


def use_environment_collation() -> None:
    """Collate names by the locale set in the environment (LC_ALL, LC_COLLATE, LANG).

    Without this the process keeps the C locale and names sort by code point.
    """
    try:
        collation = locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Could not apply the environment collation, sorting by code point: {e}")
        return
    logger.debug(f"Sorting names with collation {collation}")


def sort_images(images: Iterable[Image], mode: str | SortMode) -> List[Image]:
    """Return a sorted copy of the images.

    Args:
        images: Images to sort. Not modified.
        mode: "newest" or "oldest" by upload date, or "name" (case-insensitive,
            using the current locale's collation, missing names sort as "").
            Any other value keeps the input order.
    """
    images = list(images)
    try:
        mode = SortMode(mode)
    except ValueError:
        logger.debug(f"Unknown sort mode {mode!r}, keeping input order")
        return images

    if mode is SortMode.NEWEST:
        return sorted(images, key=lambda image: image.upload_date, reverse=True)
    if mode is SortMode.OLDEST:
        return sorted(images, key=lambda image: image.upload_date)
    return sorted(images, key=_collation_key)


def _find(records: Sequence[RecordT], record_id: str) -> Optional[RecordT]:
    for record in records:
        if record.id == record_id:
            return record
    return None


def _append_unique(ids: List[str], item_id: str) -> bool:
    if item_id in ids:
        return False
    ids.append(item_id)
    return True


def _discard(ids: List[str], item_id: str) -> bool:
    if item_id not in ids:
        return False
    ids[:] = [existing for existing in ids if existing != item_id]
    return True


class Repository:
    """Owns images and collections and keeps the links between them symmetric.

    Every operation loads the current records from the store, works on those
    copies, and writes back the keys it changed in one commit. Records handed
    out are snapshots, so mutating them has no effect on stored state.

    Link invariant: an image lists a collection id exactly when that collection
    lists the image id. Link, unlink and both deletes update the two sides
    together. ``add_image`` with initial memberships is the one exception: those
    ids are stored as given and linking them is up to the caller.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        images_key: str = "images",
        collections_key: str = "collections",
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the repository and create any missing storage keys.

        Args:
            store: Key-value store that holds the two record arrays.
            images_key: Key of the image array.
            collections_key: Key of the collection array.
            clock: Returns the current time. Defaults to UTC now.
            id_factory: Returns fresh record ids. Defaults to generate_unique_id.
        """
        self._store = store
        self._images_key = images_key
        self._collections_key = collections_key
        self._clock = clock or utcnow
        self._id_factory = id_factory or generate_unique_id
        # Serializes the read-modify-write cycle of each operation
        self._lock = threading.RLock()
        self.initialize_storage()

    def initialize_storage(self) -> None:
        """Write empty arrays for storage keys that do not exist yet."""
        with self._lock:
            for key in (self._images_key, self._collections_key):
                if self._store.get_item(key) is None:
                    logger.debug(f"Initializing empty storage key '{key}'")
                    self._store.set_item(key, "[]")

    def generate_unique_id(self) -> str:
        """Generate a fresh record id."""
        return self._id_factory()

    # Queries

    def list_images(self) -> List[Image]:
        """Get all images in insertion order."""
        with self._lock:
            return self._load_images()

    def list_collections(self) -> List[Collection]:
        """Get all collections in insertion order."""
        with self._lock:
            return self._load_collections()

    def get_image(self, image_id: str) -> Image | None:
        """Get an image by its ID."""
        with self._lock:
            return _find(self._load_images(), image_id)

    def get_collection(self, collection_id: str) -> Collection | None:
        """Get a collection by its ID."""
        with self._lock:
            return _find(self._load_collections(), collection_id)

    def get_images_in_collection(self, collection_id: str) -> List[Image]:
        """Get the images of a collection in the order the collection lists them.

        Returns an empty list when the collection does not exist.
        """
        with self._lock:
            collection = _find(self._load_collections(), collection_id)
            if collection is None:
                return []
            images_by_id = {image.id: image for image in self._load_images()}
        return [images_by_id[i] for i in collection.images if i in images_by_id]

    def search_images(self, query: str) -> List[Image]:
        """Get images whose name or description contains the query, ignoring case."""
        return search_images(self.list_images(), query)

    sort_images = staticmethod(sort_images)

    # Images

    def add_image(self, data: NewImage) -> Image:
        """Store a new image with a fresh id and the current time as its upload date."""
        with self._lock:
            images = self._load_images()
            image = Image(
                **data.model_dump(),
                id=self._id_factory(),
                upload_date=self._clock(),
            )
            images.append(image)
            self._commit(images=images)
        logger.info(f"Added image {image.id} ({image.name or 'unnamed'})")
        return image

    def update_image(self, image_id: str, patch: ImagePatch) -> bool:
        """Apply the fields set on the patch to an image.

        Returns False if no image has that id.
        """
        changes = patch.model_dump(exclude_unset=True)
        with self._lock:
            images = self._load_images()
            for index, image in enumerate(images):
                if image.id == image_id:
                    images[index] = image.model_copy(update=changes)
                    self._commit(images=images)
                    logger.debug(f"Updated image {image_id}: {sorted(changes)}")
                    return True
        logger.debug(f"Cannot update image {image_id}: not found")
        return False

    def delete_image(self, image_id: str) -> bool:
        """Delete an image and remove it from every collection.

        Returns False if no image has that id.
        """
        with self._lock:
            images = self._load_images()
            remaining = [image for image in images if image.id != image_id]
            if len(remaining) == len(images):
                logger.debug(f"Cannot delete image {image_id}: not found")
                return False

            collections = self._load_collections()
            for collection in collections:
                _discard(collection.images, image_id)
            self._commit(images=remaining, collections=collections)
        logger.info(f"Deleted image {image_id}")
        return True

    # Collections

    def add_collection(self, data: NewCollection) -> Collection:
        """Store a new, empty collection with a fresh id and the current time."""
        with self._lock:
            collections = self._load_collections()
            collection = Collection(
                **data.model_dump(),
                id=self._id_factory(),
                created_at=self._clock(),
                images=[],
            )
            collections.append(collection)
            self._commit(collections=collections)
        logger.info(f"Added collection {collection.id} ({collection.name})")
        return collection

    def update_collection(self, collection_id: str, patch: CollectionPatch) -> bool:
        """Apply the fields set on the patch to a collection.

        Returns False if no collection has that id.
        """
        changes = patch.model_dump(exclude_unset=True)
        with self._lock:
            collections = self._load_collections()
            for index, collection in enumerate(collections):
                if collection.id == collection_id:
                    collections[index] = collection.model_copy(update=changes)
                    self._commit(collections=collections)
                    logger.debug(f"Updated collection {collection_id}: {sorted(changes)}")
                    return True
        logger.debug(f"Cannot update collection {collection_id}: not found")
        return False

    def delete_collection(self, collection_id: str) -> bool:
        """Delete a collection and remove it from every image.

        Returns False if no collection has that id.
        """
        with self._lock:
            collections = self._load_collections()
            remaining = [c for c in collections if c.id != collection_id]
            if len(remaining) == len(collections):
                logger.debug(f"Cannot delete collection {collection_id}: not found")
                return False

            images = self._load_images()
            for image in images:
                _discard(image.collections, collection_id)
            self._commit(images=images, collections=remaining)
        logger.info(f"Deleted collection {collection_id}")
        return True

    # Links

    def add_image_to_collection(self, image_id: str, collection_id: str) -> bool:
        """Link an image and a collection on both sides.

        Linking an existing pair changes nothing. Returns False, without writing,
        if either id is unknown.
        """
        with self._lock:
            images = self._load_images()
            collections = self._load_collections()
            image = _find(images, image_id)
            collection = _find(collections, collection_id)
            if image is None or collection is None:
                logger.debug(f"Cannot link image {image_id} to collection {collection_id}")
                return False

            image_changed = _append_unique(image.collections, collection_id)
            collection_changed = _append_unique(collection.images, image_id)
            self._commit(
                images=images if image_changed else None,
                collections=collections if collection_changed else None,
            )
        return True

    def remove_image_from_collection(self, image_id: str, collection_id: str) -> bool:
        """Unlink an image from a collection on both sides.

        An unknown image is tolerated. Returns False, without writing, if the
        collection is unknown.
        """
        with self._lock:
            images = self._load_images()
            collections = self._load_collections()
            collection = _find(collections, collection_id)
            if collection is None:
                logger.debug(f"Cannot unlink image {image_id}: no collection {collection_id}")
                return False

            image = _find(images, image_id)
            image_changed = image is not None and _discard(image.collections, collection_id)
            collection_changed = _discard(collection.images, image_id)
            self._commit(
                images=images if image_changed else None,
                collections=collections if collection_changed else None,
            )
        return True

    # Maintenance

    def clear_all_data(self) -> None:
        """Remove every image and collection."""
        with self._lock:
            self._store.remove_item(self._images_key)
            self._store.remove_item(self._collections_key)
            self.initialize_storage()
        logger.warning("Cleared all images and collections")

    # Persistence

    def _load_images(self) -> List[Image]:
        return self._load(self._images_key, _images_adapter)

    def _load_collections(self) -> List[Collection]:
        return self._load(self._collections_key, _collections_adapter)

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        raw = self._store.get_item(key)
        if raw is None or not raw.strip():
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f"Stored data under '{key}' is malformed: {e}")
            raise StorageError(f"Stored data under '{key}' is malformed") from e

    def _commit(
        self,
        *,
        images: List[Image] | None = None,
        collections: List[Collection] | None = None,
    ) -> None:
        """Write the given arrays, restoring already written keys if a later write fails."""
        changes: List[Tuple[str, str]] = []
        if images is not None:
            changes.append((self._images_key, _images_adapter.dump_json(images).decode()))
        if collections is not None:
            changes.append(
                (self._collections_key, _collections_adapter.dump_json(collections).decode())
            )

        written: List[Tuple[str, Optional[str]]] = []
        try:
            for key, value in changes:
                previous = self._store.get_item(key)
                self._store.set_item(key, value)
                written.append((key, previous))
        except StorageError:
            for key, previous in reversed(written):
                self._restore(key, previous)
            raise

    def _restore(self, key: str, previous: Optional[str]) -> None:
        try:
            if previous is None:
                self._store.remove_item(key)
            else:
                self._store.set_item(key, previous)
        except StorageError as e:
            logger.error(f"Could not restore storage key '{key}' after a failed write: {e}")
