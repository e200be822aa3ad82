from typing import Optional


class LighthouseToolsError(RuntimeError):
    """Base class for every failure a workflow surfaces to its command."""


class ConfigurationError(LighthouseToolsError):
    pass


class SourceNotFoundError(LighthouseToolsError):
    pass


class AuthChallengeError(LighthouseToolsError):
    pass


class SigningError(LighthouseToolsError):
    pass


class UploadError(LighthouseToolsError):
    pass


class PersistenceError(LighthouseToolsError):
    pass


class RecordNotFoundError(LighthouseToolsError):
    pass


class StorageServiceError(LighthouseToolsError):
    """Raised by storage backends when a remote call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AccessControlError(LighthouseToolsError):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RetrievalError(LighthouseToolsError):
    """Both the decrypt attempt and the plain download failed."""

    def __init__(
        self,
        cid: str,
        decrypt_error: Optional[Exception],
        download_error: Optional[Exception],
    ) -> None:
        super().__init__(
            f"Could not retrieve {cid}: decrypt failed ({decrypt_error}), "
            f"download failed ({download_error})"
        )
        self.cid = cid
        self.decrypt_error = decrypt_error
        self.download_error = download_error
