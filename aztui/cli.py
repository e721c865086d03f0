"""Click-based CLI interface for aztui."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from aztui.core.autodetect import detect_project_and_repo
from aztui.core.azure_client import AzureDevOpsClient
from aztui.core.config import AztuiConfig, AztuiSettings
from aztui.core.errors import AztuiError
from aztui.core.focus import WorkspaceFocusPolicy
from aztui.utils.logger import setup_logger

console = Console()


def build_client(settings: AztuiSettings) -> AzureDevOpsClient:
    return AzureDevOpsClient(settings.azure_org_url, settings.azure_pat)


def run_catalog_call(ctx, call):
    """Run ``call(client)`` against a fresh client, reporting errors the CLI way."""
    config: AztuiConfig = ctx.obj["config"]

    async def _run():
        client = build_client(config.require())
        try:
            return await call(client)
        finally:
            await client.aclose()

    try:
        return asyncio.run(_run())
    except AztuiError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def _short_date(value) -> str:
    return value.strftime("%m/%d %H:%M") if value else "—"


STATUS_COLORS = {
    "succeeded": "green",
    "failed": "red",
    "canceled": "dim",
    "partiallySucceeded": "yellow",
    "inProgress": "yellow",
    "completed": "green",
}


def _colored(value: Optional[str]) -> str:
    if not value:
        return "—"
    color = STATUS_COLORS.get(value)
    return f"[{color}]{value}[/{color}]" if color else value


@click.group(invoke_without_command=True)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=AztuiConfig.DEFAULT_CONFIG_DIR,
    help="Directory holding config.json and the TUI log",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
@click.pass_context
def cli(ctx, config_dir: Path, verbose: bool):
    """aztui - Browse Azure DevOps projects, repos and pipelines."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = AztuiConfig(config_dir)
    ctx.obj["log_level"] = logging.DEBUG if verbose else logging.INFO
    if ctx.invoked_subcommand is None:
        ctx.invoke(tui)
    elif ctx.invoked_subcommand != "tui":
        setup_logger(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.option("--no-detect", is_flag=True, help="Do not open the repo of the current checkout")
@click.option(
    "--focus-policy",
    type=click.Choice([p.value for p in WorkspaceFocusPolicy]),
    default=None,
    help="Tab behaviour inside a workspace (default: from config, else blocked)",
)
@click.pass_context
def tui(ctx, no_detect: bool = False, focus_policy: Optional[str] = None):
    """Open the interactive browser."""
    from aztui.tui.app import run_tui

    config: AztuiConfig = ctx.obj["config"]
    setup_logger(level=ctx.obj["log_level"], log_file=config.log_file)
    policy = focus_policy or config.load().focus_policy
    try:
        policy = WorkspaceFocusPolicy(policy)
    except ValueError:
        console.print(f"[yellow]Unknown focus policy {policy!r}, using blocked[/yellow]")
        policy = WorkspaceFocusPolicy.BLOCKED
    run_tui(config=config, focus_policy=policy, detect=not no_detect)


@cli.command()
@click.option("--org-url", help="Organization URL, e.g. https://dev.azure.com/yourorg")
@click.option("--pat", help="Personal access token")
@click.option(
    "--focus-policy",
    type=click.Choice([p.value for p in WorkspaceFocusPolicy]),
    help="Tab behaviour inside a workspace",
)
@click.pass_context
def configure(ctx, org_url: Optional[str], pat: Optional[str], focus_policy: Optional[str]):
    """Save Azure DevOps credentials to the config file."""
    config: AztuiConfig = ctx.obj["config"]
    settings = config.load()
    if not org_url:
        org_url = click.prompt(
            "Organization URL", default=settings.azure_org_url or None
        )
    if not pat:
        pat = click.prompt("Personal access token", hide_input=True)
    settings.azure_org_url = org_url.strip()
    settings.azure_pat = pat.strip()
    if focus_policy:
        settings.focus_policy = focus_policy
    try:
        config.save(settings)
    except AztuiError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] Saved credentials to {config.config_file}")


@cli.command()
@click.pass_context
def projects(ctx):
    """List projects of the organization."""
    items = run_catalog_call(ctx, lambda c: c.list_projects())
    if not items:
        console.print("[yellow]No projects found.[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Description")
    for p in items:
        table.add_row(p.id, p.name, p.description[:60])
    console.print(table)


@cli.command()
@click.argument("project")
@click.pass_context
def repos(ctx, project: str):
    """List repositories of PROJECT (name or id)."""
    items = run_catalog_call(ctx, lambda c: c.list_repositories(project))
    if not items:
        console.print(f"[yellow]No repositories in {project}.[/yellow]")
        return

    table = Table(title=f"Repositories - {project}")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Default branch")
    table.add_column("URL")
    for r in items:
        branch = (r.default_branch or "—").removeprefix("refs/heads/")
        table.add_row(r.id, r.name, branch, r.web_url or "—")
    console.print(table)


@cli.command()
@click.argument("project")
@click.option("--repo", help="Only pipelines named after this repository")
@click.pass_context
def pipelines(ctx, project: str, repo: Optional[str]):
    """List pipelines of PROJECT."""
    if repo:
        items = run_catalog_call(ctx, lambda c: c.list_pipelines_for_repo(project, repo))
    else:
        items = run_catalog_call(ctx, lambda c: c.list_pipelines(project))
    if not items:
        console.print("[yellow]No pipelines found.[/yellow]")
        return

    table = Table(title=f"Pipelines - {project}")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Folder")
    for p in items:
        table.add_row(str(p.id), p.name, p.folder)
    console.print(table)


@cli.command()
@click.argument("project")
@click.argument("pipeline_id", type=int)
@click.pass_context
def runs(ctx, project: str, pipeline_id: int):
    """List runs of pipeline PIPELINE_ID."""
    items = run_catalog_call(ctx, lambda c: c.list_runs(project, pipeline_id))
    if not items:
        console.print("[yellow]No runs found.[/yellow]")
        return

    table = Table(title=f"Runs - pipeline {pipeline_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("State")
    table.add_column("Result")
    table.add_column("Created")
    for r in items:
        table.add_row(
            str(r.id), r.name, r.state, _colored(r.result), _short_date(r.created_date)
        )
    console.print(table)


@cli.command()
@click.argument("project")
@click.argument("build_id", type=int)
@click.pass_context
def timeline(ctx, project: str, build_id: int):
    """Show the stages, jobs and tasks of build BUILD_ID."""
    records = run_catalog_call(ctx, lambda c: c.get_build_timeline(project, build_id))
    if not records:
        console.print("[yellow]No timeline for this build.[/yellow]")
        return

    table = Table(title=f"Timeline - build {build_id}")
    table.add_column("Type", style="dim")
    table.add_column("Name")
    table.add_column("State")
    table.add_column("Result")
    table.add_column("Errors", justify="right")
    for rec in records:
        indent = "  " if rec.type == "Job" else "    " if rec.type == "Task" else ""
        table.add_row(
            rec.type,
            indent + rec.name,
            rec.state or "—",
            _colored(rec.result),
            str(rec.error_count) if rec.error_count else "",
        )
    console.print(table)


@cli.command()
@click.argument("project")
@click.argument("repo_id")
@click.pass_context
def prs(ctx, project: str, repo_id: str):
    """List active pull requests of repository REPO_ID."""
    items = run_catalog_call(ctx, lambda c: c.list_pull_requests(project, repo_id))
    if not items:
        console.print("[yellow]No active pull requests.[/yellow]")
        return

    table = Table(title="Active pull requests")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Author")
    for pr in items:
        table.add_row(
            str(pr.pull_request_id),
            pr.title + (" [dim](draft)[/dim]" if pr.is_draft else ""),
            pr.source_ref_name.removeprefix("refs/heads/"),
            pr.target_ref_name.removeprefix("refs/heads/"),
            pr.created_by.display_name if pr.created_by else "—",
        )
    console.print(table)


@cli.command()
@click.argument("project")
@click.argument("repo_id")
@click.argument("pr_id", type=int)
@click.option("--all-threads", is_flag=True, help="Include system threads (votes, pushes)")
@click.pass_context
def pr(ctx, project: str, repo_id: str, pr_id: int, all_threads: bool):
    """Show pull request PR_ID with its reviewers and comments."""

    async def fetch(client):
        return await asyncio.gather(
            client.get_pull_request(project, repo_id, pr_id),
            client.list_pull_request_threads(project, repo_id, pr_id),
        )

    details, threads = run_catalog_call(ctx, fetch)

    draft = " [dim](draft)[/dim]" if details.is_draft else ""
    console.print(
        f"[bold cyan]!{details.pull_request_id}[/bold cyan] {escape(details.title)}{draft}"
    )
    console.print(
        f"{details.source_ref_name.removeprefix('refs/heads/')} → "
        f"{details.target_ref_name.removeprefix('refs/heads/')}  "
        f"[dim]{details.status or '—'}, merge: {details.merge_status or '—'}[/dim]"
    )
    if details.created_by:
        console.print(
            f"Author: {escape(details.created_by.display_name)}  "
            f"[dim]{_short_date(details.creation_date)}[/dim]"
        )
    if details.description:
        console.print(f"\n{escape(details.description)}")

    if details.reviewers:
        table = Table(title="Reviewers")
        table.add_column("Reviewer", style="green")
        table.add_column("Vote")
        table.add_column("Required")
        for reviewer in details.reviewers:
            table.add_row(
                reviewer.display_name,
                reviewer.verdict,
                "yes" if reviewer.is_required else "",
            )
        console.print(table)

    shown = [t for t in threads if all_threads or not t.is_system]
    if not shown:
        console.print("[yellow]No comments.[/yellow]")
        return
    for thread in shown:
        where = f" [dim]{thread.file_path}[/dim]" if thread.file_path else ""
        console.print(f"\n[bold]Thread {thread.id}[/bold] ({thread.status or 'none'}){where}")
        for comment in thread.comments:
            author = comment.author.display_name if comment.author else "—"
            console.print(f"  [green]{escape(author)}[/green]: {escape(comment.content)}")


@cli.command()
@click.pass_context
def users(ctx):
    """List licensed users of the organization."""
    items = run_catalog_call(ctx, lambda c: c.list_users())
    if not items:
        console.print("[yellow]No users found.[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("Name", style="green")
    table.add_column("Email", style="cyan")
    table.add_column("License")
    for user in sorted(items, key=lambda u: u.display_name.lower()):
        table.add_row(user.display_name, user.mail_address, user.license or "—")
    console.print(table)


@cli.command()
@click.argument("project")
@click.argument("repo_id")
@click.pass_context
def branches(ctx, project: str, repo_id: str):
    """List branches of repository REPO_ID."""
    items = run_catalog_call(ctx, lambda c: c.list_branches(project, repo_id))
    if not items:
        console.print("[yellow]No branches found.[/yellow]")
        return

    table = Table(title="Branches")
    table.add_column("Branch", style="green")
    table.add_column("Commit", style="cyan")
    for ref in items:
        table.add_row(ref.short_name, ref.object_id[:8])
    console.print(table)


@cli.command()
@click.pass_context
def detect(ctx):
    """Show the Azure DevOps project and repo of the current checkout."""
    settings: AztuiSettings = ctx.obj["config"].load()
    result = run_catalog_call(
        ctx,
        lambda c: detect_project_and_repo(c, settings.azure_org_url, Path.cwd()),
    )
    if not result.organization:
        console.print("[yellow]No matching Azure DevOps remote for this directory.[/yellow]")
        sys.exit(1)
    console.print(f"Organization: [cyan]{result.organization}[/cyan]")
    console.print(
        f"Project:      {result.project.name if result.project else '[red]not found[/red]'}"
    )
    console.print(
        f"Repository:   {result.repository.name if result.repository else '[red]not found[/red]'}"
    )


if __name__ == "__main__":
    cli()
