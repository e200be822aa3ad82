from typing import Iterable, Optional

from web3 import Web3

DEFAULT_SELECTOR = "0x8c6645e0"

# custom errors declared by the DataCoin factory contracts
KNOWN_ERRORS = [
    "EnforcedPause",
    "ExpectedPause",
    "FailedDeployment",
    "InsufficientBalance",
    "InsufficientLockAmount",
    "InvalidAllocation",
    "InvalidFeeConfig",
    "InvalidTaxConfig",
    "InvalidVestingDuration",
    "LPTokensAlreadyWithdrawn",
    "LPTokensStillLocked",
    "LiquidityAdditionFailed",
    "LiquidityAlreadyAdded",
    "NoLPTokensToWithdraw",
    "NotCreator",
    "OnlyDataCoin",
]


def error_selector(name: str) -> str:
    """4-byte selector of a parameterless custom error, 0x-prefixed."""
    signature = name if name.endswith(")") else f"{name}()"
    return Web3.to_hex(Web3.keccak(text=signature)[:4])


def decode_selector(selector: str, names: Iterable[str] = KNOWN_ERRORS) -> Optional[str]:
    selector = selector.lower()
    if not selector.startswith("0x"):
        selector = "0x" + selector

    for name in names:
        candidate = error_selector(name)
        print(f"{name}(): {candidate}")
        if candidate == selector:
            return name
    return None
