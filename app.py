import sys

from loguru import logger

from imagekeeper.api import create_app
from imagekeeper.config import settings
from imagekeeper.repository import Repository, use_environment_collation
from imagekeeper.samples import seed_sample_data
from imagekeeper.storage.local import LocalKeyValueStore

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
use_environment_collation()

logger.info(f"Opening image library at {settings.storage_path}")
if settings.auth_password == "change-me":
    logger.warning("Using the default password, set AUTH_PASSWORD to change it")

store = LocalKeyValueStore(settings.storage_path)
repository = Repository(
    store,
    images_key=settings.images_key,
    collections_key=settings.collections_key,
)
if settings.seed_sample_data:
    seed_sample_data(repository)

app = create_app(repository=repository)
