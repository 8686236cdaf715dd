"""Per-provider API keys saved under the user's home directory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

import yaml

from ..config import ConfigError
from ..logging import get_logger

ENV_HOME = "PERFLENS_HOME"
CREDENTIALS_FILENAME = "credentials.yml"


def default_home() -> Path:
    """Return ``$PERFLENS_HOME`` or ``~/.perflens``."""
    configured = os.getenv(ENV_HOME)
    return Path(configured).expanduser() if configured else Path.home() / ".perflens"


def mask_key(key: str) -> str:
    """Show only the first and last four characters of ``key``."""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


class CredentialStore:
    """YAML file mapping provider names to API keys."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_home() / CREDENTIALS_FILENAME
        self.logger = get_logger("llm.credentials")

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Unable to read credentials from {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Credentials file {self.path} must contain a mapping")
        keys = data.get("api_keys") or {}
        if not isinstance(keys, dict):
            raise ConfigError(f"api_keys in {self.path} must be a mapping")
        return {str(name): str(value) for name, value in keys.items() if value}

    def get(self, provider: str) -> Optional[str]:
        return self._load().get(provider.lower())

    def set(self, provider: str, key: str) -> Path:
        """Save ``key`` for ``provider`` and return the credentials file path."""
        key = key.strip()
        if not key:
            raise ValueError("API key must not be empty")
        keys = self._load()
        keys[provider.lower()] = key
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump({"api_keys": keys}, sort_keys=True),
            encoding="utf-8",
        )
        try:
            self.path.chmod(0o600)
        except OSError as exc:  # pragma: no cover - filesystems without POSIX modes
            self.logger.debug("Unable to restrict permissions on %s: %s", self.path, exc)
        self.logger.debug("Stored %s API key in %s", provider, self.path)
        return self.path


__all__ = ["CredentialStore", "default_home", "mask_key"]
