"""Client-side file encryption in the format the Lighthouse SDK writes.

Layout: salt (16 bytes) || iv (12 bytes) || AES-256-GCM ciphertext+tag.
The AES key is PBKDF2-HMAC-SHA256 over the hex master key.
"""
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_LEN = 16
IV_LEN = 12
PBKDF2_ITERATIONS = 250_000


def _derive_key(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_bytes(data: bytes, password: str) -> bytes:
    salt = os.urandom(SALT_LEN)
    iv = os.urandom(IV_LEN)
    aes = AESGCM(_derive_key(password, salt))
    return salt + iv + aes.encrypt(iv, data, None)


def decrypt_bytes(blob: bytes, password: str) -> bytes:
    if len(blob) < SALT_LEN + IV_LEN + 16:
        raise ValueError("Encrypted payload is too short")
    salt = blob[:SALT_LEN]
    iv = blob[SALT_LEN:SALT_LEN + IV_LEN]
    aes = AESGCM(_derive_key(password, salt))
    try:
        return aes.decrypt(iv, blob[SALT_LEN + IV_LEN:], None)
    except InvalidTag:
        raise ValueError("Decryption failed: wrong key or corrupted payload")
