import argparse
from typing import List, Optional

from ..errors import LighthouseToolsError
from ..records import UploadKind, UploadRecord
from ..storage import get_storage_backend
from ..upload import UploadOptions, create_sample_file, upload_file, upload_text
from .common import load_identity, load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lighthouse-upload",
        description="Upload a file or text to Lighthouse and save its details locally",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", help="file to upload (default: a generated sample file)")
    source.add_argument("--text", help="text payload to upload")
    parser.add_argument("--name", default="encrypted-text", help="name for text uploads")
    parser.add_argument(
        "--plain", action="store_true", help="upload without encryption"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> Optional[UploadRecord]:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except LighthouseToolsError as e:
        print(f"[config ERROR] {e}")
        return None

    identity, error = load_identity(settings)
    if identity is None:
        print(f"[config ERROR] {error}")
        return None

    encrypt = not args.plain
    storage = None
    try:
        storage = get_storage_backend(settings)
        if args.text is not None:
            print("\n=== UPLOADING TEXT ===")
            options = UploadOptions(kind=UploadKind.TEXT, encrypt=encrypt, file_name=args.name)
            return upload_text(args.text, options, identity, storage, settings)

        if args.file:
            path = args.file
        else:
            path = create_sample_file(settings.workdir, settings.public_address)
            print(f"[upload] Created unique sample file: {path}")

        kind = UploadKind.ENCRYPTED if encrypt else UploadKind.REGULAR
        print(f"\n=== UPLOADING {kind.value.upper()} FILE ===")
        return upload_file(path, UploadOptions(kind=kind, encrypt=encrypt), identity, storage, settings)
    except LighthouseToolsError as e:
        print(f"[upload ERROR] {e}")
        return None
    finally:
        if storage is not None:
            storage.close()


if __name__ == "__main__":
    main()
