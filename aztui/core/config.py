"""Credentials and settings for aztui."""

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ValidationError

from aztui.core.errors import ConfigError

logger = logging.getLogger(__name__)

ORG_URL_ENV = "AZURE_ORG_URL"
PAT_ENV = "AZURE_PAT"


class AztuiSettings(BaseModel):
    azure_org_url: str = ""
    azure_pat: str = ""
    focus_policy: str = "blocked"

    def is_complete(self) -> bool:
        return bool(self.azure_org_url and self.azure_pat)


class AztuiConfig:
    """Reads and writes ~/.config/aztui/config.json.

    Values missing from the file are filled from the environment, then from
    a ``.env`` file in the working directory.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "aztui"

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config_dir = Path(config_dir or self.DEFAULT_CONFIG_DIR)
        self.config_file = self.config_dir / "config.json"
        self.log_file = self.config_dir / "aztui.log"
        self.env_file = Path(env_file) if env_file else Path.cwd() / ".env"
        self._environ = os.environ if environ is None else environ

    def _read_file(self) -> dict:
        try:
            data = json.loads(self.config_file.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self.config_file, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> AztuiSettings:
        try:
            settings = AztuiSettings(**self._read_file())
        except ValidationError as e:
            logger.warning("Ignoring invalid config %s: %s", self.config_file, e)
            settings = AztuiSettings()
        if settings.is_complete():
            return settings

        dotenv = dotenv_values(self.env_file) if self.env_file.exists() else {}
        for field, env_name in (("azure_org_url", ORG_URL_ENV), ("azure_pat", PAT_ENV)):
            if not getattr(settings, field):
                value = self._environ.get(env_name) or dotenv.get(env_name) or ""
                setattr(settings, field, value)
        return settings

    def require(self) -> AztuiSettings:
        """Load settings, raising ConfigError when credentials are incomplete."""
        settings = self.load()
        if not settings.is_complete():
            raise ConfigError(
                f"Azure DevOps credentials missing. Run 'aztui configure' or set "
                f"{ORG_URL_ENV} and {PAT_ENV}."
            )
        return settings

    def save(self, settings: AztuiSettings) -> None:
        """Write settings to the config file, readable by the owner only."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(json.dumps(settings.model_dump(), indent=2))
            self.config_file.chmod(0o600)
        except OSError as e:
            raise ConfigError(f"Failed to write config file {self.config_file}: {e}") from e
