import argparse
from typing import List, Optional

from ..decode_error import DEFAULT_SELECTOR, KNOWN_ERRORS, decode_selector


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lighthouse-decode-error",
        description="Match a 4-byte custom error selector against known error names",
    )
    parser.add_argument("selector", nargs="?", default=DEFAULT_SELECTOR)
    parser.add_argument(
        "--names",
        nargs="+",
        default=KNOWN_ERRORS,
        help="candidate error names (without parentheses)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> Optional[str]:
    args = build_parser().parse_args(argv)
    print(f"Decoding error signature: {args.selector}\n")

    match = decode_selector(args.selector, args.names)
    if match:
        print(f"\nMATCH FOUND: {match}()")
    else:
        print("\nNo matching error name found")
    return match


if __name__ == "__main__":
    main()
