"""The remote data source the navigation core depends on."""

from typing import Protocol

from aztui.core.models import (
    GitRef,
    Pipeline,
    PipelineRun,
    Project,
    PullRequest,
    Repository,
    TimelineRecord,
)


class RemoteCatalog(Protocol):
    """Async listing calls. Any of them may raise; callers treat errors as opaque."""

    async def list_projects(self) -> list[Project]: ...

    async def list_repositories(self, project_id: str) -> list[Repository]: ...

    async def list_pipelines(self, project_id: str) -> list[Pipeline]: ...

    async def list_runs(self, project_id: str, pipeline_id: int) -> list[PipelineRun]: ...

    async def get_build_timeline(
        self, project_id: str, build_id: int
    ) -> list[TimelineRecord]: ...

    async def list_pull_requests(
        self, project_id: str, repository_id: str
    ) -> list[PullRequest]: ...

    async def list_branches(self, project_id: str, repository_id: str) -> list[GitRef]: ...
