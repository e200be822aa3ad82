import argparse
from typing import List, Optional

from ..errors import LighthouseToolsError
from ..retrieve import access_specific_file, access_uploaded_files
from ..storage import get_storage_backend
from .common import load_identity, load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lighthouse-access",
        description="Download or decrypt files uploaded to Lighthouse",
    )
    parser.add_argument(
        "cid",
        nargs="?",
        help="CID to fetch; without it every saved upload record is processed",
    )
    return parser


def print_usage() -> None:
    print("\n=== DONE ===")
    print("Usage:")
    print("- Access all uploaded files: lighthouse-access")
    print("- Access specific file: lighthouse-access <CID>")
    print("- Upload new files: lighthouse-upload")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    print("Lighthouse File Access Tool\n")

    try:
        settings = load_settings()
    except LighthouseToolsError as e:
        print(f"[config ERROR] {e}")
        return

    identity, error = load_identity(settings)
    if identity is None:
        print(f"[config ERROR] {error}")
        return
    print(f"Using wallet address: {identity.address}\n")

    storage = None
    try:
        storage = get_storage_backend(settings)
        if args.cid:
            access_specific_file(args.cid, identity, storage, settings)
        else:
            access_uploaded_files(identity, storage, settings)
    except LighthouseToolsError as e:
        print(f"[retrieve ERROR] {e}")
    finally:
        if storage is not None:
            storage.close()

    print_usage()


if __name__ == "__main__":
    main()
