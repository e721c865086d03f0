"""Shared fixtures: an in-memory catalog whose calls can be held open."""

import asyncio

import pytest

from aztui.core.errors import CatalogError
from aztui.core.models import GitRef, Pipeline, Project, PullRequest, Repository


class FakeCatalog:
    """RemoteCatalog backed by dicts.

    ``hold(key)`` makes the next call with that key block until
    ``release(key)``, so tests decide the order in which concurrent loads
    resolve. Keys are ``"projects"`` or ``("repositories", project_id)`` and
    so on. The return value is captured when the call starts.
    """

    def __init__(self, projects=None, repositories=None, pull_requests=None,
                 branches=None, pipelines=None):
        self.projects = projects or []
        self.repositories = repositories or {}
        self.pull_requests = pull_requests or {}
        self.branches = branches or {}
        self.pipelines = pipelines or {}
        self.threads: dict = {}
        self.users: list = []
        self.failures: dict = {}
        self.calls: list = []
        self._gates: dict = {}
        self._held: dict = {}
        self.closed = False

    def hold(self, key) -> None:
        self._gates[key] = self._held[key] = asyncio.Event()

    def release(self, key) -> None:
        self._held.pop(key).set()

    async def _call(self, key, value):
        self.calls.append(key)
        gate = self._gates.pop(key, None)
        if gate is not None:
            await gate.wait()
        if key in self.failures:
            raise self.failures[key]
        return value

    async def aclose(self):
        self.closed = True

    async def list_projects(self):
        return await self._call("projects", list(self.projects))

    async def list_repositories(self, project_id):
        key = ("repositories", project_id)
        return await self._call(key, list(self.repositories.get(project_id, [])))

    async def list_pipelines(self, project_id):
        key = ("pipelines", project_id)
        return await self._call(key, list(self.pipelines.get(project_id, [])))

    async def list_pipelines_for_repo(self, project_id, repo_name):
        return [p for p in await self.list_pipelines(project_id) if p.name == repo_name]

    async def list_runs(self, project_id, pipeline_id):
        return await self._call(("runs", project_id, pipeline_id), [])

    async def get_build_timeline(self, project_id, build_id):
        return await self._call(("timeline", project_id, build_id), [])

    async def list_pull_requests(self, project_id, repository_id):
        key = ("pull_requests", repository_id)
        return await self._call(key, list(self.pull_requests.get(repository_id, [])))

    async def list_branches(self, project_id, repository_id):
        key = ("branches", repository_id)
        return await self._call(key, list(self.branches.get(repository_id, [])))

    async def get_pull_request(self, project_id, repository_id, pull_request_id):
        for pr in self.pull_requests.get(repository_id, []):
            if pr.pull_request_id == pull_request_id:
                return await self._call(("pull_request", pull_request_id), pr)
        raise CatalogError(f"GET pullrequests/{pull_request_id} returned 404", status_code=404)

    async def list_pull_request_threads(self, project_id, repository_id, pull_request_id):
        key = ("threads", pull_request_id)
        return await self._call(key, list(self.threads.get(pull_request_id, [])))

    async def list_users(self):
        return await self._call("users", list(self.users))


@pytest.fixture
def projects():
    return [
        Project(id="p-alpha", name="Alpha", description="First project"),
        Project(id="p-beta", name="Beta"),
    ]


@pytest.fixture
def repositories():
    return {
        "p-alpha": [
            Repository(id="r-api", name="api", webUrl="https://dev.azure.com/acme/Alpha/_git/api"),
            Repository(id="r-web", name="web"),
        ],
        "p-beta": [Repository(id="r-tools", name="tools")],
    }


@pytest.fixture
def catalog(projects, repositories):
    return FakeCatalog(
        projects=projects,
        repositories=repositories,
        pull_requests={
            "r-api": [
                PullRequest(
                    pullRequestId=7,
                    title="Add health check",
                    sourceRefName="refs/heads/feature/health",
                    targetRefName="refs/heads/main",
                ),
            ],
        },
        branches={
            "r-api": [
                GitRef(name="refs/heads/main", objectId="0123456789abcdef"),
                GitRef(name="refs/heads/feature/health", objectId="fedcba9876543210"),
            ],
        },
        pipelines={
            "p-alpha": [
                Pipeline(id=1, name="api"),
                Pipeline(id=2, name="web"),
                Pipeline(id=3, name="api-nightly", folder="\\nightly"),
            ],
        },
    )


@pytest.fixture
def failing():
    """Build a CatalogError the way the REST client reports a failed call."""
    return lambda status=500: CatalogError(f"GET returned {status}", status_code=status)


@pytest.fixture
def fake_catalog():
    """Factory for extra catalogs, e.g. the one a reconnect switches to."""
    return FakeCatalog
