from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Basic auth settings
    auth_username: str = "admin"
    auth_password: str = "change-me"

    # Storage settings
    storage_path: str = "data/storage.json"
    images_key: str = "images"
    collections_key: str = "collections"

    # Add the sample collections and images when the library is empty
    seed_sample_data: bool = False

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
