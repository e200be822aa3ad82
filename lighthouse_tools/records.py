import json
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import PersistenceError, RecordNotFoundError


class UploadKind(str, Enum):
    REGULAR = "regular"
    TEXT = "text"
    ENCRYPTED = "encrypted"


RECORD_FILES = {
    UploadKind.REGULAR: "regular-upload-details.json",
    UploadKind.TEXT: "text-upload-details.json",
    UploadKind.ENCRYPTED: "encrypted-upload-details.json",
}

# written by earlier versions of the encrypted upload script
LEGACY_ENCRYPTED_FILE = "upload-details.json"


def record_path(workdir: Path, kind: UploadKind) -> Path:
    return Path(workdir) / RECORD_FILES[UploadKind(kind)]


@dataclass(frozen=True)
class UploadRecord:
    fileName: str
    contentId: str
    sizeBytes: int
    ownerPublicAddress: Optional[str]
    uploadTimestamp: str
    kind: UploadKind
    encrypted: bool = False
    storedSize: Optional[int] = None
    viewUrl: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = UploadKind(self.kind).value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_kind: UploadKind = UploadKind.REGULAR) -> "UploadRecord":
        cid = data.get("contentId") or data.get("cid")
        if not cid:
            raise RecordNotFoundError("Upload record has no content id")

        try:
            kind = UploadKind(data.get("kind") or data.get("type") or default_kind)
            size = int(data.get("sizeBytes", data.get("size", 0)))
            stored_size = data.get("storedSize")
            stored_size = int(stored_size) if stored_size is not None else None
        except (TypeError, ValueError) as e:
            raise RecordNotFoundError(f"Upload record for {cid} is malformed: {e}") from e

        return cls(
            fileName=data.get("fileName") or cid,
            contentId=cid,
            sizeBytes=size,
            ownerPublicAddress=data.get("ownerPublicAddress") or data.get("publicKey"),
            uploadTimestamp=data.get("uploadTimestamp", ""),
            kind=kind,
            encrypted=bool(data.get("encrypted", kind == UploadKind.ENCRYPTED)),
            storedSize=stored_size,
            viewUrl=data.get("viewUrl"),
        )


def save_record(record: UploadRecord, path: Path) -> Path:
    """Write the record, replacing whatever was stored for this kind."""
    try:
        Path(path).write_text(json.dumps(record.to_dict(), indent=2))
    except OSError as e:
        raise PersistenceError(f"Could not write upload details to {path}: {e}") from e
    return Path(path)


def load_record(path: Path, default_kind: UploadKind = UploadKind.REGULAR) -> UploadRecord:
    path = Path(path)
    if not path.exists():
        raise RecordNotFoundError(f"No upload details at {path}")
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise RecordNotFoundError(f"Unreadable upload details at {path}: {e}") from e
    if not isinstance(data, dict):
        raise RecordNotFoundError(f"Upload details at {path} are not a JSON object")
    return UploadRecord.from_dict(data, default_kind=default_kind)


def find_records(workdir: Path) -> List[Tuple[Path, UploadKind]]:
    """Record files present in workdir, in scan order."""
    candidates = [
        (record_path(workdir, UploadKind.REGULAR), UploadKind.REGULAR),
        (record_path(workdir, UploadKind.TEXT), UploadKind.TEXT),
        (record_path(workdir, UploadKind.ENCRYPTED), UploadKind.ENCRYPTED),
        (Path(workdir) / LEGACY_ENCRYPTED_FILE, UploadKind.ENCRYPTED),
    ]
    return [(path, kind) for path, kind in candidates if path.exists()]
