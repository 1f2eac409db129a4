"""CLI for maintaining a local image library: seed sample data, clear everything, or print stats"""

import argparse
import sys

from loguru import logger

from imagekeeper.config import settings
from imagekeeper.errors import StorageError
from imagekeeper.repository import Repository, use_environment_collation
from imagekeeper.samples import seed_sample_data
from imagekeeper.storage.local import LocalKeyValueStore


def open_repository(storage_path: str) -> Repository:
    store = LocalKeyValueStore(storage_path)
    return Repository(
        store,
        images_key=settings.images_key,
        collections_key=settings.collections_key,
    )


def seed(repository: Repository) -> None:
    if not seed_sample_data(repository):
        logger.info("Library is not empty, sample data not added")


def clear(repository: Repository) -> None:
    repository.clear_all_data()


def stats(repository: Repository) -> None:
    images = repository.list_images()
    collections = repository.list_collections()
    print(f"Images: {len(images)}")
    print(f"Collections: {len(collections)}")
    for collection in collections:
        print(f"  - {collection.name}: {len(collection.images)} images")


COMMANDS = {"seed": seed, "clear": clear, "stats": stats}


def main(command: str, storage_path: str) -> int:
    try:
        repository = open_repository(storage_path)
        COMMANDS[command](repository)
    except StorageError as e:
        logger.error(f"Storage failure: {e}")
        return 1
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("command", choices=sorted(COMMANDS), help="Maintenance command to run")
    parser.add_argument(
        "--storage-path",
        type=str,
        required=False,
        help="Local storage file",
        default=settings.storage_path,
    )

    args = parser.parse_args()

    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
    use_environment_collation()
    sys.exit(main(command=args.command, storage_path=args.storage_path))
