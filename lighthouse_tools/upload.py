import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .auth import sign_auth
from .config import Settings
from .errors import (
    PersistenceError,
    SourceNotFoundError,
    StorageServiceError,
    UploadError,
)
from .identity import Identity
from .records import UploadKind, UploadRecord, record_path, save_record
from .storage.base import StorageClient, UploadResult


@dataclass(frozen=True)
class UploadOptions:
    kind: UploadKind = UploadKind.REGULAR
    encrypt: bool = False
    # only used for text payloads, files keep their own name
    file_name: str = "text"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _send(
    data: bytes,
    name: str,
    options: UploadOptions,
    identity: Identity,
    storage: StorageClient,
    settings: Settings,
) -> UploadResult:
    # sign first so an auth failure never leaves half an upload behind
    signed_message = sign_auth(identity, storage) if options.encrypt else None
    try:
        if options.encrypt:
            print(f"[upload] Starting encrypted upload of {name}...")
            return storage.upload_encrypted(
                data, name, settings.api_key, identity.address, signed_message
            )
        print(f"[upload] Starting upload of {name}...")
        return storage.upload(data, name, settings.api_key)
    except StorageServiceError as e:
        print(f"[storage ERROR] {e}")
        raise UploadError(f"Upload of {name} failed: {e}") from e


def _persist(
    result: UploadResult,
    payload_size: int,
    options: UploadOptions,
    identity: Identity,
    settings: Settings,
) -> UploadRecord:
    record = UploadRecord(
        fileName=result.name,
        contentId=result.cid,
        sizeBytes=payload_size,
        ownerPublicAddress=identity.address,
        uploadTimestamp=_utc_timestamp(),
        kind=options.kind,
        encrypted=options.encrypt,
        storedSize=result.size,
        viewUrl=settings.view_url(result.cid),
    )
    path = save_record(record, record_path(settings.workdir, options.kind))
    print(f"[upload] Uploaded {record.fileName}, cid = {record.contentId}")
    print(f"[upload] Upload details saved to {path.name}")
    return record


def upload_file(
    path: Union[str, Path],
    options: UploadOptions,
    identity: Identity,
    storage: StorageClient,
    settings: Settings,
) -> UploadRecord:
    path = Path(path)
    if not path.is_file():
        raise SourceNotFoundError(f"File not found: {path}")

    print(f"[upload] Using public key: {identity.address}")
    print(f"[upload] Uploading file: {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceNotFoundError(f"Could not read {path}: {e}") from e
    result = _send(data, path.name, options, identity, storage, settings)
    return _persist(result, len(data), options, identity, settings)


def upload_text(
    text: Union[str, bytes],
    options: UploadOptions,
    identity: Identity,
    storage: StorageClient,
    settings: Settings,
) -> UploadRecord:
    data = text.encode("utf-8") if isinstance(text, str) else text
    preview = data[:50].decode("utf-8", errors="replace")
    print(f"[upload] Using public key: {identity.address}")
    print(f"[upload] Uploading text: {preview}...")
    result = _send(data, options.file_name, options, identity, storage, settings)
    return _persist(result, len(data), options, identity, settings)


def upload(
    source: Union[str, Path, bytes],
    options: UploadOptions,
    identity: Identity,
    storage: StorageClient,
    settings: Settings,
) -> UploadRecord:
    """Upload a local file (path) or an in-memory payload (bytes)."""
    if isinstance(source, bytes):
        return upload_text(source, options, identity, storage, settings)
    return upload_file(source, options, identity, storage, settings)


def create_sample_file(workdir: Path, public_address: Optional[str] = None) -> Path:
    """Write a uniquely named sample file, so every run uploads a new CID."""
    now = datetime.now(timezone.utc)
    stamp = now.isoformat().replace(":", "-").replace(".", "-").replace("+00-00", "Z")
    unique_id = uuid.uuid4().hex[:6]
    path = Path(workdir) / f"sample-data-{stamp}-{unique_id}.txt"

    try:
        path.write_text(
            "This is a sample encrypted file uploaded to Lighthouse!\n"
            f"Creation Timestamp: {now.isoformat()}\n"
            f"Unique ID: {unique_id}\n"
            f"Random data: {random.random()}\n"
            f"Session info: Upload session {int(now.timestamp() * 1000)}\n"
            "\n"
            "This file will be encrypted and stored on IPFS/Filecoin network.\n"
            "Only the owner with the correct private key can decrypt and access this content.\n"
            f"Public Address: {public_address or 'Not set'}"
        )
    except OSError as e:
        raise PersistenceError(f"Could not write sample file {path}: {e}") from e
    return path
