"""Credential persistence.

Credentials are stored in the ``credentials`` section of config.yaml; the
other sections of the file are left untouched.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from flowpulse.config import Credentials, get_config_path, read_config_file

logger = logging.getLogger(__name__)


class CredentialStore:
    """Load, save and clear the stored server credentials.

    USAGE:
        store = CredentialStore()
        store.save(Credentials(base_url=url, api_key=key))
        creds = store.load()  # None when nothing stored
        store.clear()
    """

    def __init__(self, path: Path | None = None):
        self.path = path or get_config_path()

    def load(self) -> Credentials | None:
        """Return stored credentials; an unparseable entry counts as absent."""
        section = read_config_file(self.path).get("credentials")
        if not section:
            return None
        try:
            return Credentials.model_validate(section)
        except ValidationError:
            logger.warning("Stored credentials in %s are invalid; ignoring", self.path)
            return None

    def save(self, credentials: Credentials) -> None:
        data = read_config_file(self.path)
        data["credentials"] = credentials.model_dump()
        self._write(data)

    def clear(self) -> None:
        data = read_config_file(self.path)
        if "credentials" in data or self.path.exists():
            data.pop("credentials", None)
            self._write(data)

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        # The file holds an API key
        self.path.chmod(0o600)
