from pathlib import Path
from typing import Optional, Tuple

from ..config import Settings, load_env_file
from ..errors import LighthouseToolsError
from ..identity import Identity


def load_settings(workdir: Optional[Path] = None) -> Settings:
    load_env_file()
    return Settings.from_env(workdir=workdir)


def load_identity(settings: Settings) -> Tuple[Optional[Identity], Optional[str]]:
    """Build the wallet before any network call; returns (identity, error)."""
    try:
        identity = Identity.from_secret(settings.require_private_key())
    except LighthouseToolsError as e:
        return None, str(e)
    return identity, None
