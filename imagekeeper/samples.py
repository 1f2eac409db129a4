"""Sample data for a fresh, empty library."""

from loguru import logger

from imagekeeper.domain.collection import NewCollection
from imagekeeper.domain.image import NewImage
from imagekeeper.repository import Repository

SAMPLE_COLLECTIONS = [
    NewCollection(name="Travel", description="Photos from memorable trips"),
    NewCollection(name="Family", description="Family gatherings and special moments"),
]

SAMPLE_IMAGES = [
    NewImage(
        name="Mountain landscape",
        description="A mountain valley with a river running through it",
        url="https://via.placeholder.com/600x400/3498db/ffffff?text=Mountains",
    ),
    NewImage(
        name="Beach sunset",
        description="Sunset over the beach, golden light on the water",
        url="https://via.placeholder.com/600x400/e74c3c/ffffff?text=Sunset",
    ),
    NewImage(
        name="City at night",
        description="The city skyline lit up at night",
        url="https://via.placeholder.com/600x400/2ecc71/ffffff?text=City",
    ),
    NewImage(
        name="Family dinner",
        description="Dinner with the whole family",
        url="https://via.placeholder.com/600x400/f39c12/ffffff?text=Dinner",
    ),
]

# Sample image index -> sample collection index
SAMPLE_LINKS = [(0, 0), (1, 0), (3, 1)]


def seed_sample_data(repository: Repository) -> bool:
    """Add the sample collections and images if the library is empty.

    Returns:
        True if sample data was added, False if the library already had content.
    """
    if repository.list_images() or repository.list_collections():
        return False

    collections = [repository.add_collection(data) for data in SAMPLE_COLLECTIONS]
    images = [repository.add_image(data) for data in SAMPLE_IMAGES]
    for image_index, collection_index in SAMPLE_LINKS:
        repository.add_image_to_collection(images[image_index].id, collections[collection_index].id)

    logger.info(f"Seeded {len(images)} sample images in {len(collections)} collections")
    return True
