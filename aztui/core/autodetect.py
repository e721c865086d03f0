"""Open the project and repository of the current git checkout."""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel

from aztui.core.catalog import RemoteCatalog
from aztui.core.focus import FocusController
from aztui.core.git_ops import GitOperations
from aztui.core.loader import LoadOrchestrator
from aztui.core.models import Pane, Project, Repository

logger = logging.getLogger(__name__)


class DetectionResult(BaseModel):
    organization: str = ""
    project: Optional[Project] = None
    repository: Optional[Repository] = None

    @property
    def should_auto_load(self) -> bool:
        return self.project is not None and self.repository is not None


def organization_matches(org_url: str, organization: str) -> bool:
    """True if ``org_url`` points at ``organization`` (case-insensitive).

    Understands https://dev.azure.com/{org} and https://{org}.visualstudio.com.
    """
    parsed = urlparse(org_url.rstrip("/"))
    host = (parsed.hostname or "").lower()
    if host == "dev.azure.com":
        parts = [p for p in parsed.path.split("/") if p]
        return bool(parts) and parts[-1].lower() == organization.lower()
    if host.endswith(".visualstudio.com"):
        return host.split(".")[0] == organization.lower()
    return False


def _match_by_name(items, name: str):
    for item in items:
        if item.name == name:
            return item
    for item in items:
        if item.name.lower() == name.lower():
            return item
    return None


async def detect_project_and_repo(
    catalog: RemoteCatalog, org_url: str, repo_path: Path
) -> DetectionResult:
    """Look up the checkout's origin remote in the catalog.

    Never raises for a missing or foreign remote; the result simply has no
    project or repository. Catalog errors propagate.
    """
    info = await asyncio.to_thread(GitOperations(repo_path).get_remote_info)
    if info is None:
        return DetectionResult()
    if not organization_matches(org_url, info.organization):
        logger.debug("Remote org %s is not %s", info.organization, org_url)
        return DetectionResult()

    result = DetectionResult(organization=info.organization)
    result.project = _match_by_name(await catalog.list_projects(), info.project)
    if result.project is None:
        return result
    repos = await catalog.list_repositories(result.project.id)
    result.repository = _match_by_name(repos, info.repository)
    return result


async def open_detected(
    controller: FocusController,
    orchestrator: LoadOrchestrator,
    result: DetectionResult,
) -> bool:
    """Walk the normal highlight/confirm path down to the detected repo's workspace."""
    if not result.should_auto_load:
        return False

    await orchestrator.wait_idle()
    state = controller.store.snapshot()
    index = next((i for i, p in enumerate(state.projects) if p.id == result.project.id), None)
    if index is None:
        return False
    controller.focus(Pane.PROJECTS)
    controller.highlight(Pane.PROJECTS, index)
    controller.confirm()

    await orchestrator.wait_idle()
    state = controller.store.snapshot()
    if state.selected_project is None or state.selected_project.id != result.project.id:
        return False
    index = next(
        (i for i, r in enumerate(state.repositories) if r.id == result.repository.id), None
    )
    if index is None:
        return False
    controller.highlight(Pane.REPOSITORIES, index)
    controller.confirm()
    logger.info("Opened %s/%s from git remote", result.project.name, result.repository.name)
    return True
