from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UploadResult:
    name: str
    cid: str
    size: int


@dataclass(frozen=True)
class DownloadedObject:
    cid: str
    content: bytes
    content_type: Optional[str] = None
    encrypted: bool = False

    @property
    def is_json(self) -> bool:
        return bool(self.content_type) and "json" in self.content_type.lower()


class StorageClient(ABC):
    """Capability interface over a content-addressed storage network.

    Every method is a single remote attempt. Backends raise
    StorageServiceError on failure.
    """

    @abstractmethod
    def get_auth_message(self, address: str) -> str:
        """Return the challenge text the address must sign"""
        pass

    @abstractmethod
    def upload(self, data: bytes, name: str, api_key: Optional[str]) -> UploadResult:
        """Upload plaintext bytes and return the issued CID"""
        pass

    @abstractmethod
    def upload_encrypted(
        self,
        data: bytes,
        name: str,
        api_key: Optional[str],
        address: str,
        signed_message: str,
    ) -> UploadResult:
        """Encrypt, upload and register the key for address"""
        pass

    @abstractmethod
    def fetch_encryption_key(self, cid: str, address: str, signed_message: str) -> str:
        """Recover the file key; fails when the file is not encrypted or access is denied"""
        pass

    @abstractmethod
    def decrypt(self, cid: str, key: str) -> bytes:
        pass

    @abstractmethod
    def download(self, cid: str) -> DownloadedObject:
        pass

    @abstractmethod
    def deal_status(self, cid: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def apply_access_condition(
        self,
        address: str,
        cid: str,
        signed_message: str,
        conditions: List[Dict[str, Any]],
        aggregator: str,
        chain_type: str = "evm",
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_zk_conditions(self, cid: str, signed_message: str) -> Any:
        pass

    def close(self) -> None:
        pass
