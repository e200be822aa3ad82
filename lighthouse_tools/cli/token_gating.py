import argparse
from typing import List, Optional

from ..access_control import (
    DEFAULT_AGGREGATOR,
    apply_condition,
    block_height_condition,
    check_access_control_workflow,
    get_file_encryption_key,
)
from ..errors import LighthouseToolsError
from ..storage import get_storage_backend
from .common import load_identity, load_settings

COMMANDS = ("access-control", "get-key", "test-workflow")
CID_PREFIXES = ("bafkrei", "Qm")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lighthouse-token-gating",
        description="Apply access conditions to an encrypted Lighthouse file",
    )
    parser.add_argument("cid", nargs="?")
    parser.add_argument("command", nargs="?", default="access-control")
    return parser


def print_usage() -> None:
    print("\nUsage:")
    print("  lighthouse-token-gating <CID> [command]")
    print("\nCommands:")
    print("  access-control  - Apply access control (default)")
    print("  get-key         - Get encryption key")
    print("  test-workflow   - Test complete workflow")
    print("\nExample:")
    print("  lighthouse-token-gating bafkrei... access-control")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    print("Lighthouse File Access Control Tool\n")

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

    if not args.cid:
        print("[access-control ERROR] No CID provided. Please provide a CID as a command line argument.")
        print_usage()
        return

    if not args.cid.startswith(CID_PREFIXES):
        print("[access-control] Warning: CID format looks unusual. Expected format: bafkrei... or Qm...")

    if args.command not in COMMANDS:
        print(f"[access-control ERROR] Unknown command: {args.command}")
        print(f"Available commands: {', '.join(COMMANDS)}")
        return

    print(f"CID: {args.cid}")
    print(f"Command: {args.command}\n")

    conditions = [block_height_condition(settings.access_chain, threshold=1)]
    storage = None
    try:
        storage = get_storage_backend(settings)
        if args.command == "access-control":
            apply_condition(args.cid, identity, storage, conditions, DEFAULT_AGGREGATOR)
        elif args.command == "get-key":
            get_file_encryption_key(args.cid, identity, storage)
        else:
            check_access_control_workflow(args.cid, identity, storage, conditions, DEFAULT_AGGREGATOR)
    except LighthouseToolsError as e:
        print(f"[access-control ERROR] {e}")
        print("\nDebugging Information:")
        print(f"- Wallet address: {identity.address}")
        print(f"- Current working directory: {settings.workdir}")
    finally:
        if storage is not None:
            storage.close()


if __name__ == "__main__":
    main()
