from dataclasses import dataclass, field

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from .errors import SigningError


@dataclass(frozen=True)
class Identity:
    """Wallet derived from a private key. Signs Lighthouse auth challenges."""

    private_key: str = field(repr=False)
    address: str

    @classmethod
    def from_secret(cls, private_key: str) -> "Identity":
        try:
            account = Account.from_key(private_key)
        except Exception as e:
            # eth_account raises ValueError / binascii.Error / eth_keys errors
            # depending on how the key is malformed
            raise SigningError(f"Invalid private key: {e}") from e
        return cls(private_key=private_key, address=account.address)

    def sign_message(self, message: str) -> str:
        """EIP-191 personal_sign over the exact message text, 0x-prefixed hex."""
        try:
            signed = Account.sign_message(encode_defunct(text=message), self.private_key)
        except Exception as e:
            raise SigningError(f"Could not sign message for {self.address}: {e}") from e
        return Web3.to_hex(signed.signature)
