"""Exception types raised by aztui."""

from typing import Optional


class AztuiError(Exception):
    """Base class for errors the CLI and TUI report to the user."""


class CatalogError(AztuiError):
    """An Azure DevOps REST call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(AztuiError):
    """Credentials are missing or could not be read."""
