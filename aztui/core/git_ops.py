"""Git remote inspection used to find the Azure DevOps repo of a checkout."""

import re
import subprocess
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from pydantic import BaseModel

REMOTE_PATTERNS = [
    # https://dev.azure.com/{org}/{project}/_git/{repo}, optionally with user@
    re.compile(r"^https://(?:[^@/]+@)?dev\.azure\.com/([^/]+)/([^/]+)/_git/([^/]+)$"),
    # https://{org}.visualstudio.com/{project}/_git/{repo}
    re.compile(r"^https://(?:[^@/]+@)?([^./]+)\.visualstudio\.com/([^/]+)/_git/([^/]+)$"),
    # git@ssh.dev.azure.com:v3/{org}/{project}/{repo}
    re.compile(r"^git@ssh\.dev\.azure\.com:v3/([^/]+)/([^/]+)/([^/]+)$"),
]


class RemoteInfo(BaseModel):
    organization: str
    project: str
    repository: str
    remote_url: str


def parse_remote_url(url: str) -> Optional[RemoteInfo]:
    """Split an Azure DevOps remote URL into org, project and repo, or None."""
    url = url.strip()
    if url.endswith(".git"):
        url = url[: -len(".git")]
    for pattern in REMOTE_PATTERNS:
        match = pattern.match(url)
        if match:
            org, project, repo = (unquote(part) for part in match.groups())
            return RemoteInfo(organization=org, project=project, repository=repo, remote_url=url)
    return None


class GitOperations:
    """Git operations wrapper."""

    def __init__(self, repo_path: Path):
        """Initialize with repository path."""
        self.repo_path = Path(repo_path)

    def _run_git(self, *args, check: bool = True) -> subprocess.CompletedProcess:
        """Run git command in repo."""
        return subprocess.run(
            ["git", "-C", str(self.repo_path)] + list(args),
            capture_output=True,
            text=True,
            check=check,
        )

    def is_git_repo(self) -> bool:
        """Check if directory is a git repository."""
        try:
            self._run_git("rev-parse", "--git-dir")
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False

    def get_remote_url(self, remote: str = "origin") -> Optional[str]:
        result = self._run_git("remote", "get-url", remote, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def get_remote_info(self, remote: str = "origin") -> Optional[RemoteInfo]:
        """Azure DevOps coordinates of ``remote``, or None if it is not hosted there."""
        if not self.is_git_repo():
            return None
        url = self.get_remote_url(remote)
        return parse_remote_url(url) if url else None
