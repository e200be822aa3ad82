import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from .auth import sign_auth
from .config import Settings
from .errors import (
    LighthouseToolsError,
    PersistenceError,
    RetrievalError,
    StorageServiceError,
)
from .identity import Identity
from .records import UploadKind, UploadRecord, find_records, load_record
from .storage.base import StorageClient

DECRYPT = "decrypt"
DOWNLOAD = "download"

# longer content is saved but not echoed to the console
PREVIEW_LIMIT = 1000


@dataclass(frozen=True)
class Attempt:
    """Outcome of one retrieval strategy."""

    ok: bool
    source: str
    content: Optional[bytes] = None
    content_type: Optional[str] = None
    error: Optional[Exception] = None


def attempt_decrypt(cid: str, identity: Identity, storage: StorageClient) -> Attempt:
    print(f"[retrieve] Attempting to decrypt file with CID: {cid}")
    try:
        signed_message = sign_auth(identity, storage)
        key = storage.fetch_encryption_key(cid, identity.address, signed_message)
        print("[retrieve] Encryption key fetched successfully")
        content = storage.decrypt(cid, key)
    except LighthouseToolsError as e:
        print(f"[retrieve] Decryption failed: {e}")
        print("[retrieve] This file may not be encrypted or you don't have access rights")
        return Attempt(ok=False, source=DECRYPT, error=e)

    print("[retrieve] File decrypted successfully!")
    return Attempt(ok=True, source=DECRYPT, content=content)


def attempt_download(cid: str, storage: StorageClient) -> Attempt:
    print(f"[retrieve] Downloading file with CID: {cid}")
    try:
        obj = storage.download(cid)
    except StorageServiceError as e:
        print(f"[storage ERROR] {e}")
        return Attempt(ok=False, source=DOWNLOAD, error=e)

    if obj.encrypted:
        error = StorageServiceError(
            f"{cid} is encrypted; a plain download only returns ciphertext"
        )
        print(f"[retrieve] {error}")
        return Attempt(ok=False, source=DOWNLOAD, error=error)

    print("[retrieve] File downloaded successfully!")
    print(f"[retrieve] Content type: {obj.content_type}")
    print(f"[retrieve] File size: {len(obj.content)}")
    return Attempt(ok=True, source=DOWNLOAD, content=obj.content, content_type=obj.content_type)


def fetch(cid: str, identity: Identity, storage: StorageClient) -> Attempt:
    """Decrypt first, fall back to a plain download.

    Decryption always goes first: the plaintext of an encrypted object is
    never reachable through the gateway.
    """
    decrypted = attempt_decrypt(cid, identity, storage)
    if decrypted.ok:
        return decrypted

    print("[retrieve] Falling back to regular file download...")
    downloaded = attempt_download(cid, storage)
    if downloaded.ok:
        return downloaded

    raise RetrievalError(cid, decrypted.error, downloaded.error)


def retrieve(cid: str, identity: Identity, storage: StorageClient) -> bytes:
    return fetch(cid, identity, storage).content


def _format_content(attempt: Attempt) -> bytes:
    content_type = (attempt.content_type or "").lower()
    if "json" in content_type:
        try:
            data = json.loads(attempt.content)
        except ValueError:
            # mislabelled payload, keep the raw bytes
            return attempt.content
        return json.dumps(data, indent=2).encode("utf-8")
    return attempt.content


def _print_preview(content: bytes, label: str) -> None:
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        print("[retrieve] Content appears to be binary data")
        return
    if 0 < len(text) < PREVIEW_LIMIT:
        print(f"\n=== {label} ===")
        print(text)
        print(f"=== END {label} ===\n")


def _unique_path(workdir: Path, stem: str, suffix: str = ".txt") -> Path:
    # several decryptions can land in the same millisecond
    path = workdir / f"{stem}{suffix}"
    counter = 1
    while path.exists():
        path = workdir / f"{stem}-{counter}{suffix}"
        counter += 1
    return path


def save_attempt(attempt: Attempt, workdir: Path, name: str = "downloaded-file") -> Path:
    """Write retrieved bytes next to the upload records."""
    if attempt.source == DECRYPT:
        path = _unique_path(Path(workdir), f"decrypted-{int(time.time() * 1000)}")
        content = attempt.content
        label = "DECRYPTED CONTENT"
    else:
        path = Path(workdir) / f"downloaded-{Path(name).name}"
        content = _format_content(attempt)
        label = "JSON CONTENT" if content is not attempt.content else "FILE CONTENT"

    try:
        path.write_bytes(content)
    except OSError as e:
        raise PersistenceError(f"Could not write {path}: {e}") from e
    print(f"[retrieve] File saved as: {path.name}")
    _print_preview(content, label)
    return path


def deal_status(cid: str, storage: StorageClient) -> Optional[List[Any]]:
    print(f"[retrieve] Getting Filecoin deal status for CID: {cid}")
    try:
        status = storage.deal_status(cid)
    except StorageServiceError as e:
        print(f"[storage ERROR] Could not get deal status for {cid}: {e}")
        return None
    print(f"[retrieve] Deal Status: {json.dumps(status, indent=2)}")
    return status


def _describe(record: UploadRecord) -> None:
    print(f"- Name: {record.fileName}")
    print(f"- CID: {record.contentId}")
    print(f"- Size: {record.sizeBytes}")
    print(f"- Upload time: {record.uploadTimestamp}")
    if record.viewUrl:
        print(f"- View URL: {record.viewUrl}")


def process_record(
    record: UploadRecord,
    identity: Identity,
    storage: StorageClient,
    settings: Settings,
) -> Optional[Path]:
    """Fetch one recorded upload; returns the written file or None on failure."""
    _describe(record)
    try:
        if record.encrypted:
            attempt = fetch(record.contentId, identity, storage)
        else:
            attempt = attempt_download(record.contentId, storage)
            if not attempt.ok:
                raise RetrievalError(record.contentId, None, attempt.error)
    except RetrievalError as e:
        print(f"[retrieve ERROR] {e}")
        return None

    path = save_attempt(attempt, settings.workdir, record.fileName)
    if record.kind == UploadKind.REGULAR:
        deal_status(record.contentId, storage)
    return path


def access_uploaded_files(
    identity: Identity, storage: StorageClient, settings: Settings
) -> List[Path]:
    """Process every upload record found in the working directory."""
    found = find_records(settings.workdir)
    if not found:
        print("[retrieve] No uploaded file details found.")
        print('[retrieve] Please run "lighthouse-upload" first to upload some files.')
        return []

    written = []
    for path, kind in found:
        print(f"\n[retrieve] Found {kind.value} upload details in {path.name}")
        try:
            record = load_record(path, default_kind=kind)
        except LighthouseToolsError as e:
            print(f"[retrieve ERROR] {e}")
            continue
        output = process_record(record, identity, storage, settings)
        if output is not None:
            written.append(output)
    return written


def access_specific_file(
    cid: str, identity: Identity, storage: StorageClient, settings: Settings
) -> Path:
    print(f"[retrieve] === ACCESSING SPECIFIC FILE: {cid} ===")
    try:
        attempt = fetch(cid, identity, storage)
        return save_attempt(attempt, settings.workdir, "specific-file")
    finally:
        deal_status(cid, storage)
