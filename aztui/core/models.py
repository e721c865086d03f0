"""Remote record models and the navigation state they are projected into."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Remote records ──────────────────────────────────────────────────────────


class RemoteModel(BaseModel):
    """Base for records parsed from Azure DevOps JSON (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Project(RemoteModel):
    id: str
    name: str
    description: str = ""
    state: str = ""
    url: str = ""


class Repository(RemoteModel):
    id: str
    name: str
    default_branch: Optional[str] = Field(default=None, alias="defaultBranch")
    remote_url: Optional[str] = Field(default=None, alias="remoteUrl")
    web_url: Optional[str] = Field(default=None, alias="webUrl")
    is_disabled: bool = Field(default=False, alias="isDisabled")


class Pipeline(RemoteModel):
    id: int
    name: str
    folder: str = "\\"
    revision: Optional[int] = None


class PipelineRun(RemoteModel):
    id: int
    name: str = ""
    state: str = ""
    result: Optional[str] = None
    created_date: Optional[datetime] = Field(default=None, alias="createdDate")
    finished_date: Optional[datetime] = Field(default=None, alias="finishedDate")


class TimelineRecord(RemoteModel):
    id: str
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    type: str = ""
    name: str = ""
    state: Optional[str] = None
    result: Optional[str] = None
    order: Optional[int] = None
    error_count: int = Field(default=0, alias="errorCount")
    warning_count: int = Field(default=0, alias="warningCount")


class IdentityRef(RemoteModel):
    display_name: str = Field(default="", alias="displayName")
    unique_name: str = Field(default="", alias="uniqueName")


# Reviewer vote values
VOTES = {
    10: "approved",
    5: "approved with suggestions",
    0: "no vote",
    -5: "waiting for author",
    -10: "rejected",
}


class Reviewer(IdentityRef):
    vote: int = 0
    is_required: bool = Field(default=False, alias="isRequired")

    @property
    def verdict(self) -> str:
        return VOTES.get(self.vote, "no vote")


class PullRequest(RemoteModel):
    pull_request_id: int = Field(alias="pullRequestId")
    title: str = ""
    description: str = ""
    source_ref_name: str = Field(default="", alias="sourceRefName")
    target_ref_name: str = Field(default="", alias="targetRefName")
    status: str = ""
    is_draft: bool = Field(default=False, alias="isDraft")
    created_by: Optional[IdentityRef] = Field(default=None, alias="createdBy")
    creation_date: Optional[datetime] = Field(default=None, alias="creationDate")
    merge_status: Optional[str] = Field(default=None, alias="mergeStatus")
    reviewers: list[Reviewer] = []


class Comment(RemoteModel):
    id: int
    author: Optional[IdentityRef] = None
    content: str = ""
    comment_type: str = Field(default="text", alias="commentType")
    published_date: Optional[datetime] = Field(default=None, alias="publishedDate")


class CommentThread(RemoteModel):
    id: int
    status: Optional[str] = None
    is_deleted: bool = Field(default=False, alias="isDeleted")
    thread_context: Optional[dict] = Field(default=None, alias="threadContext")
    comments: list[Comment] = []

    @property
    def file_path(self) -> Optional[str]:
        return (self.thread_context or {}).get("filePath")

    @property
    def is_system(self) -> bool:
        """Threads holding only system comments (votes, pushes, status changes)."""
        return bool(self.comments) and all(c.comment_type == "system" for c in self.comments)


class User(RemoteModel):
    """An organization member, as listed by the user entitlements API."""

    id: str = ""
    display_name: str = Field(default="", alias="displayName")
    mail_address: str = Field(default="", alias="mailAddress")
    principal_name: str = Field(default="", alias="principalName")
    license: str = ""


class GitRef(RemoteModel):
    name: str
    object_id: str = Field(default="", alias="objectId")

    @property
    def short_name(self) -> str:
        return self.name.removeprefix("refs/heads/")


# ─── Navigation state ────────────────────────────────────────────────────────


class Option(BaseModel):
    """A selectable, presentation-ready item."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str = ""


def project_option(project: Project) -> Option:
    return Option(
        id=project.id,
        label=project.name,
        description=project.description or project.id,
    )


def repository_option(repo: Repository) -> Option:
    return Option(id=repo.id, label=repo.name, description=repo.web_url or repo.id)


class Pane(str, Enum):
    """The three navigable regions of the screen."""

    PROJECTS = "projects"
    REPOSITORIES = "repositories"
    WORKSPACE = "workspace"


class LoadKind(str, Enum):
    """Independent streams of remote loads, each with its own generation."""

    PROJECTS = "projects"
    REPOSITORIES = "repositories"
    ACTIONS = "actions"


class LoadGeneration(BaseModel):
    projects: int = 0
    repositories: int = 0
    actions: int = 0


class NavigationState(BaseModel):
    """Everything the screen shows. Owned and mutated only by SelectionStore."""

    focused_pane: Pane = Pane.PROJECTS

    projects: list[Option] = []
    selected_project_index: Optional[int] = None
    project_cursor: int = 0

    repositories: list[Option] = []
    selected_repo_index: Optional[int] = None
    repo_cursor: int = 0

    workspace_options: list[Option] = []
    selected_workspace_index: Optional[int] = None
    workspace_cursor: int = 0

    in_workspace: bool = False
    load_generation: LoadGeneration = Field(default_factory=LoadGeneration)

    projects_error: Optional[str] = None
    repositories_error: Optional[str] = None
    loading_projects: bool = False
    loading_repositories: bool = False

    active_action: Optional[str] = None
    action_results: list[Option] = []
    action_error: Optional[str] = None
    loading_action: bool = False

    @staticmethod
    def _pick(options: list[Option], index: Optional[int]) -> Optional[Option]:
        if index is None or not 0 <= index < len(options):
            return None
        return options[index]

    @property
    def selected_project(self) -> Optional[Option]:
        return self._pick(self.projects, self.selected_project_index)

    @property
    def selected_repo(self) -> Optional[Option]:
        return self._pick(self.repositories, self.selected_repo_index)

    @property
    def selected_workspace_option(self) -> Optional[Option]:
        return self._pick(self.workspace_options, self.selected_workspace_index)

    def options_for(self, pane: Pane) -> list[Option]:
        return {
            Pane.PROJECTS: self.projects,
            Pane.REPOSITORIES: self.repositories,
            Pane.WORKSPACE: self.workspace_options,
        }[pane]

    def cursor_for(self, pane: Pane) -> int:
        return {
            Pane.PROJECTS: self.project_cursor,
            Pane.REPOSITORIES: self.repo_cursor,
            Pane.WORKSPACE: self.workspace_cursor,
        }[pane]

    def highlighted(self, pane: Pane) -> Optional[Option]:
        """Option under the pane's cursor, or None when the pane is empty."""
        return self._pick(self.options_for(pane), self.cursor_for(pane))
