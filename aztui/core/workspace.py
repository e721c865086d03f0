"""Workspace actions offered once a repository is opened."""

from aztui.core.catalog import RemoteCatalog
from aztui.core.models import Option

PULL_REQUESTS = "pull_requests"
BRANCHES = "branches"
PIPELINES = "pipelines"

# (action id, label, description template)
WORKSPACE_ACTIONS = [
    (PULL_REQUESTS, "Pull requests", "Active pull requests in {repo}"),
    (BRANCHES, "Branches", "Branches of {repo}"),
    (PIPELINES, "Pipelines", "Pipelines building {repo}"),
]


def workspace_options(repo: Option) -> list[Option]:
    """The fixed action list, parameterized by the opened repository."""
    return [
        Option(id=action_id, label=label, description=template.format(repo=repo.label))
        for action_id, label, template in WORKSPACE_ACTIONS
    ]


async def fetch_action_results(
    catalog: RemoteCatalog, action_id: str, project_id: str, repo: Option
) -> list[Option]:
    """Run a workspace action against the catalog and project its results."""
    if action_id == PULL_REQUESTS:
        prs = await catalog.list_pull_requests(project_id, repo.id)
        return [
            Option(
                id=str(pr.pull_request_id),
                label=f"!{pr.pull_request_id} {pr.title}" + (" (draft)" if pr.is_draft else ""),
                description=(
                    f"{pr.source_ref_name.removeprefix('refs/heads/')} → "
                    f"{pr.target_ref_name.removeprefix('refs/heads/')}"
                ),
            )
            for pr in prs
        ]
    if action_id == BRANCHES:
        refs = await catalog.list_branches(project_id, repo.id)
        return [
            Option(id=ref.name, label=ref.short_name, description=ref.object_id[:8])
            for ref in refs
        ]
    if action_id == PIPELINES:
        pipelines = await catalog.list_pipelines(project_id)
        return [
            Option(id=str(p.id), label=p.name, description=p.folder)
            for p in pipelines
            if p.name == repo.label
        ]
    raise ValueError(f"Unknown workspace action: {action_id}")
