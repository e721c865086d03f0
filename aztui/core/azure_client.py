"""Azure DevOps REST client implementing the RemoteCatalog calls."""

import logging
from typing import Any, Iterable, Optional, TypeVar
from urllib.parse import quote, urlparse

import httpx
from pydantic import ValidationError

from aztui.core.errors import CatalogError
from aztui.core.models import (
    CommentThread,
    GitRef,
    Pipeline,
    PipelineRun,
    Project,
    PullRequest,
    RemoteModel,
    Repository,
    TimelineRecord,
    User,
)

logger = logging.getLogger(__name__)

API_VERSION = "7.1"
ENTITLEMENTS_API_VERSION = "7.1-preview.3"
PAGE_SIZE = 100
CONTINUATION_HEADER = "x-ms-continuationtoken"
# Basic and Test Plans licences; stakeholders and service identities are left out
USER_LICENSE_FILTER = "(licenseId eq 'Account-Express' or licenseId eq 'Account-TestManager')"

M = TypeVar("M", bound=RemoteModel)


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def entitlements_url(org_url: str) -> str:
    """Base URL of the user entitlements service, which has its own host."""
    parsed = urlparse(org_url.rstrip("/"))
    host = (parsed.hostname or "").lower()
    if host == "dev.azure.com":
        return f"https://vsaex.dev.azure.com{parsed.path}"
    if host.endswith(".visualstudio.com"):
        org = host.split(".")[0]
        return f"https://{org}.vsaex.visualstudio.com"
    return org_url.rstrip("/")


class AzureDevOpsClient:
    """Thin async wrapper over the handful of endpoints aztui browses.

    Authenticates with a personal access token (basic auth, empty user).
    Every failure, including a body that does not parse, surfaces as
    CatalogError.
    """

    def __init__(
        self,
        org_url: str,
        pat: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.org_url = org_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.org_url,
            auth=httpx.BasicAuth("", pat),
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "AzureDevOpsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(
        self, path: str, params: Optional[dict] = None, api_version: str = API_VERSION
    ) -> tuple[httpx.Response, Any]:
        """GET ``path`` and return the response with its decoded JSON body."""
        query = {"api-version": api_version}
        query.update(params or {})
        try:
            response = await self._client.get(path, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise CatalogError(f"GET {path} returned {status}", status_code=status) from e
        except httpx.RequestError as e:
            raise CatalogError(f"GET {path} failed: {e}") from e

        # An invalid token gets a 203 with the HTML sign-in page
        if "json" not in response.headers.get("content-type", ""):
            raise CatalogError(
                f"GET {path} did not return JSON; check the personal access token",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise CatalogError(
                f"GET {path} returned malformed JSON: {e}", status_code=response.status_code
            ) from e
        logger.debug("GET %s -> %d", path, response.status_code)
        return response, body

    async def _get_values(self, path: str, params: Optional[dict] = None) -> list:
        _, body = await self._get(path, params)
        return _field(body, "value", path)

    async def _get_models(
        self, model: type[M], path: str, params: Optional[dict] = None
    ) -> list[M]:
        return _parse(model, await self._get_values(path, params), path)

    # ── catalog ──────────────────────────────────────────────────────────

    async def list_projects(self) -> list[Project]:
        """All projects of the organization, following continuation tokens."""
        projects: list[Project] = []
        token: Optional[str] = None
        while True:
            params = {"$top": PAGE_SIZE}
            if token:
                params["continuationToken"] = token
            path = "/_apis/projects"
            response, body = await self._get(path, params)
            projects.extend(_parse(Project, _field(body, "value", path), path))
            token = response.headers.get(CONTINUATION_HEADER)
            if not token:
                return projects

    async def list_repositories(self, project_id: str) -> list[Repository]:
        return await self._get_models(
            Repository, f"/{_segment(project_id)}/_apis/git/repositories"
        )

    async def list_pipelines(self, project_id: str) -> list[Pipeline]:
        return await self._get_models(Pipeline, f"/{_segment(project_id)}/_apis/pipelines")

    async def list_pipelines_for_repo(self, project_id: str, repo_name: str) -> list[Pipeline]:
        """Pipelines named after the repository (the Azure default on creation)."""
        return [p for p in await self.list_pipelines(project_id) if p.name == repo_name]

    async def list_runs(self, project_id: str, pipeline_id: int) -> list[PipelineRun]:
        return await self._get_models(
            PipelineRun,
            f"/{_segment(project_id)}/_apis/pipelines/{_segment(pipeline_id)}/runs",
        )

    async def get_build_timeline(self, project_id: str, build_id: int) -> list[TimelineRecord]:
        path = f"/{_segment(project_id)}/_apis/build/builds/{_segment(build_id)}/timeline"
        _, body = await self._get(path)
        records = _parse(TimelineRecord, _field(body, "records", path), path)
        records.sort(key=lambda r: (r.order is None, r.order or 0))
        return records

    def _pull_requests_path(self, project_id: str, repository_id: str) -> str:
        return (
            f"/{_segment(project_id)}/_apis/git/repositories/"
            f"{_segment(repository_id)}/pullrequests"
        )

    async def list_pull_requests(self, project_id: str, repository_id: str) -> list[PullRequest]:
        return await self._get_models(
            PullRequest,
            self._pull_requests_path(project_id, repository_id),
            {"searchCriteria.status": "active"},
        )

    async def get_pull_request(
        self, project_id: str, repository_id: str, pull_request_id: int
    ) -> PullRequest:
        path = (
            f"{self._pull_requests_path(project_id, repository_id)}/"
            f"{_segment(pull_request_id)}"
        )
        _, body = await self._get(path)
        [pr] = _parse(PullRequest, [body], path)
        return pr

    async def list_pull_request_threads(
        self, project_id: str, repository_id: str, pull_request_id: int
    ) -> list[CommentThread]:
        """Comment threads of a pull request, without deleted ones."""
        path = (
            f"{self._pull_requests_path(project_id, repository_id)}/"
            f"{_segment(pull_request_id)}/threads"
        )
        threads = await self._get_models(CommentThread, path)
        return [t for t in threads if not t.is_deleted]

    async def list_branches(self, project_id: str, repository_id: str) -> list[GitRef]:
        return await self._get_models(
            GitRef,
            f"/{_segment(project_id)}/_apis/git/repositories/{_segment(repository_id)}/refs",
            {"filter": "heads/"},
        )

    async def list_users(self) -> list[User]:
        """Licensed organization members that have a mail address."""
        base = entitlements_url(self.org_url)
        path = f"{base}/_apis/userentitlements"
        users: list[User] = []
        token: Optional[str] = None
        while True:
            params = {"$filter": USER_LICENSE_FILTER}
            if token:
                params["continuationToken"] = token
            _, body = await self._get(path, params, api_version=ENTITLEMENTS_API_VERSION)
            members = _field(body, "members", path)
            records = []
            for member in members:
                user = member.get("user") if isinstance(member, dict) else None
                if not isinstance(user, dict) or not user.get("mailAddress"):
                    continue
                license_name = (member.get("accessLevel") or {}).get("licenseDisplayName") or ""
                records.append({**user, "id": member.get("id", ""), "license": license_name})
            users.extend(_parse(User, records, path))
            token = body.get("continuationToken")
            if not token:
                return users


def _field(body: Any, name: str, path: str) -> list:
    if not isinstance(body, dict):
        raise CatalogError(f"GET {path} returned an unexpected body")
    value = body.get(name) or []
    if not isinstance(value, list):
        raise CatalogError(f"GET {path} returned an unexpected {name!r} field")
    return value


def _parse(model: type[M], records: Iterable[Any], path: str) -> list[M]:
    try:
        return [model.model_validate(record) for record in records]
    except ValidationError as e:
        raise CatalogError(
            f"GET {path} returned an unexpected {model.__name__} record: "
            f"{e.error_count()} validation error(s)"
        ) from e
