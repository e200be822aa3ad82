from .base import DownloadedObject, StorageClient, UploadResult
from .factory import get_storage_backend

__all__ = ["DownloadedObject", "StorageClient", "UploadResult", "get_storage_backend"]
