"""
Configuration management for FabLab CLI.

Multi-environment support:
  The CLI stores separate settings per API URL, so a local backend and a
  deployed one can be used side by side.

  Config structure:
  {
    "environments": {
      "https://api.fablab.example": {
        "token": "eyJ...",
        "kind": "rag_multimodal",
        "default_notebook_id": 42
      },
      "http://localhost:8000": {
        "token": "eyJ...",
        "kind": "notebook",
        "default_notebook_id": 7
      }
    },
    "default_url": "http://localhost:8000"
  }

Environment resolution order:
  1. FABLAB_API_URL environment variable
  2. --api-url command line flag
  3. default_url from config file
  4. Fallback: http://localhost:8000

FABLAB_TOKEN overrides the stored token. Tokens are never obtained here;
paste one with `fablab token <value>`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from composer.registry import MODULE_ENDPOINTS

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_KIND = "rag_multimodal"


class Config:
    """Config manager for FabLab CLI with multi-environment support."""

    def __init__(self, api_url_override: str | None = None, config_dir: Path | None = None):
        """
        Initialize config.

        Args:
            api_url_override: Optional --api-url flag value
            config_dir: Directory holding config.json (default ~/.fablab)
        """
        self.config_dir = config_dir or Path.home() / ".fablab"
        self.config_file = self.config_dir / "config.json"
        self._data = {}
        self._api_url_override = api_url_override
        self._load()

    def _load(self):
        """Load config from disk."""
        if self.config_file.exists():
            try:
                with open(self.config_file) as f:
                    self._data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("config: ignoring unreadable %s: %s", self.config_file, e)
                self._data = {}

        # Ensure environments dict exists
        if "environments" not in self._data:
            self._data["environments"] = {}

    def _save(self):
        """Save config to disk with owner-only permissions."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            json.dump(self._data, f, indent=2)

        self.config_file.chmod(0o600)

    @property
    def api_url(self) -> str:
        """
        Get current API URL.

        Resolution order:
        1. FABLAB_API_URL environment variable
        2. --api-url flag (passed to constructor)
        3. default_url from config
        4. Fallback: http://localhost:8000
        """
        env_url = os.environ.get("FABLAB_API_URL")
        if env_url:
            return env_url.rstrip("/")

        if self._api_url_override:
            return self._api_url_override.rstrip("/")

        default = self._data.get("default_url", DEFAULT_API_URL)
        return default.rstrip("/")

    def _get_env(self) -> dict:
        """Get current environment config dict."""
        return self._data["environments"].get(self.api_url, {})

    def _set_env(self, key: str, value):
        """Set a value in current environment config."""
        if self.api_url not in self._data["environments"]:
            self._data["environments"][self.api_url] = {}
        self._data["environments"][self.api_url][key] = value
        self._save()

    @property
    def token(self) -> str | None:
        """Bearer token for current environment. FABLAB_TOKEN wins."""
        return os.environ.get("FABLAB_TOKEN") or self._get_env().get("token")

    @token.setter
    def token(self, value: str | None):
        self._set_env("token", value)

    @property
    def kind(self) -> str:
        """Module endpoint family: rag_multimodal or notebook."""
        return self._get_env().get("kind", DEFAULT_KIND)

    @kind.setter
    def kind(self, value: str):
        if value not in MODULE_ENDPOINTS:
            raise ValueError(f"Unknown kind {value!r}; expected one of {sorted(MODULE_ENDPOINTS)}")
        self._set_env("kind", value)

    @property
    def default_notebook_id(self) -> int | None:
        return self._get_env().get("default_notebook_id")

    @default_notebook_id.setter
    def default_notebook_id(self, value: int | None):
        self._set_env("default_notebook_id", value)

    @property
    def download_dir(self) -> Path:
        """Where index downloads and previews are written."""
        return Path(os.environ.get("FABLAB_DOWNLOAD_DIR") or ".")

    @property
    def drafts_file(self) -> Path:
        return self.config_dir / "drafts.json"

    def clear_environment(self, url: str | None = None):
        """
        Clear settings for a specific environment.

        Args:
            url: Environment URL to clear. If None, clears current environment.
        """
        target_url = (url or self.api_url).rstrip("/")
        if target_url in self._data["environments"]:
            del self._data["environments"][target_url]
            self._save()

    def list_environments(self) -> list[dict]:
        """
        List all configured environments.

        Returns:
            List of dicts with url, kind, notebook, is_current keys.
        """
        current = self.api_url
        result = []
        for url, env in self._data.get("environments", {}).items():
            result.append({
                "url": url,
                "kind": env.get("kind", DEFAULT_KIND),
                "notebook": env.get("default_notebook_id"),
                "is_current": url == current,
            })
        return result
