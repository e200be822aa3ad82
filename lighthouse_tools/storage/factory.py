from ..config import Settings
from ..errors import ConfigurationError
from .base import StorageClient
from .lighthouse import LighthouseStorage


def get_storage_backend(settings: Settings) -> StorageClient:
    backend = settings.storage_backend.lower()

    if backend == "lighthouse":
        return LighthouseStorage(settings)
    else:
        raise ConfigurationError(f"Unknown storage backend: {backend}")
