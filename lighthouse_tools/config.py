import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


DEFAULT_GATEWAY_URL = "https://gateway.lighthouse.storage"
DEFAULT_API_URL = "https://api.lighthouse.storage"
DEFAULT_UPLOAD_URL = "https://upload.lighthouse.storage"
DEFAULT_ENCRYPTION_URL = "https://encryption.lighthouse.storage"
DEFAULT_ACCESS_CHAIN = "Base_Testnet"


def load_env_file(env_path: Optional[Path] = None) -> None:
    """Load a .env file into the process environment.

    Looks in the working directory when no path is given.
    """
    if env_path is None:
        env_path = Path.cwd() / ".env"
    load_dotenv(env_path)


@dataclass(frozen=True)
class Settings:
    private_key: Optional[str] = None
    public_address: Optional[str] = None
    api_key: Optional[str] = None
    workdir: Path = field(default_factory=Path.cwd)
    gateway_url: str = DEFAULT_GATEWAY_URL
    api_url: str = DEFAULT_API_URL
    upload_url: str = DEFAULT_UPLOAD_URL
    encryption_url: str = DEFAULT_ENCRYPTION_URL
    timeout: float = 60.0
    access_chain: str = DEFAULT_ACCESS_CHAIN
    storage_backend: str = "lighthouse"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        workdir: Optional[Path] = None,
    ) -> "Settings":
        env = os.environ if environ is None else environ

        timeout_raw = env.get("LIGHTHOUSE_TIMEOUT", "60")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigurationError(
                f"LIGHTHOUSE_TIMEOUT must be a number (got {timeout_raw!r})"
            )

        return cls(
            private_key=env.get("PRIVATE_KEY") or None,
            public_address=env.get("PUBLIC_ADDRESS") or None,
            api_key=env.get("API_KEY") or None,
            workdir=workdir or Path.cwd(),
            gateway_url=env.get("LIGHTHOUSE_GATEWAY_URL", DEFAULT_GATEWAY_URL).rstrip("/"),
            api_url=env.get("LIGHTHOUSE_API_URL", DEFAULT_API_URL).rstrip("/"),
            upload_url=env.get("LIGHTHOUSE_UPLOAD_URL", DEFAULT_UPLOAD_URL).rstrip("/"),
            encryption_url=env.get(
                "LIGHTHOUSE_ENCRYPTION_URL", DEFAULT_ENCRYPTION_URL
            ).rstrip("/"),
            timeout=timeout,
            access_chain=env.get("ACCESS_CHAIN", DEFAULT_ACCESS_CHAIN),
            storage_backend=env.get("STORAGE_BACKEND", "lighthouse").lower(),
        )

    def require_private_key(self) -> str:
        if not self.private_key:
            raise ConfigurationError(
                "PRIVATE_KEY not found in environment variables. Please set it in .env file."
            )
        return self.private_key

    def view_url(self, cid: str) -> str:
        return f"{self.gateway_url}/ipfs/{cid}"
