from .errors import AuthChallengeError, SigningError, StorageServiceError
from .identity import Identity
from .storage.base import StorageClient


def sign_auth(identity: Identity, storage: StorageClient) -> str:
    """Fetch the auth challenge for the identity and sign it.

    Single attempt; callers decide whether to retry.
    """
    try:
        message = storage.get_auth_message(identity.address)
    except StorageServiceError as e:
        print(f"[auth ERROR] Could not get auth message for {identity.address}: {e}")
        raise AuthChallengeError(f"Auth challenge request failed: {e}") from e
    print("[auth] Auth message received")

    try:
        signature = identity.sign_message(message)
    except SigningError as e:
        print(f"[auth ERROR] {e}")
        raise
    print("[auth] Message signed successfully")
    return signature
