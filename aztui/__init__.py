"""aztui - terminal browser for Azure DevOps projects, repos and pipelines."""

__version__ = "0.1.0"
