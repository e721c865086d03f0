"""aztui TUI application: projects, repositories and workspace panes."""

import logging
from pathlib import Path

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Static

from aztui.core.autodetect import detect_project_and_repo, open_detected
from aztui.core.azure_client import AzureDevOpsClient
from aztui.core.catalog import RemoteCatalog
from aztui.core.config import AztuiConfig, AztuiSettings
from aztui.core.errors import AztuiError
from aztui.core.focus import Command, FocusController, WorkspaceFocusPolicy
from aztui.core.loader import LoadOrchestrator
from aztui.core.models import LoadKind, NavigationState, Option, Pane
from aztui.core.selection_store import SelectionStore
from aztui.core.workspace import WORKSPACE_ACTIONS
from aztui.tui.modals import CredentialsModal

logger = logging.getLogger(__name__)

ACCENT = "#007595"

LOGO = (
    f"[bold {ACCENT}]"
    "  ▄▀█ ▀█ ▀█▀ █ █ █\n"
    "  █▀█ █▄  █  █▄█ █"
    "[/]"
)


# ─── Rendering helpers ───────────────────────────────────────────────────────


def render_options(
    options: list[Option], cursor: int, selected: int | None, focused: bool
) -> str:
    """Rich markup for an option list with cursor and selection markers."""
    lines = []
    for i, option in enumerate(options):
        marker = "›" if i == cursor and focused else " "
        label = escape(option.label)
        if i == selected:
            label = f"[bold #FFFFFF]{label}[/]"
        elif i == cursor and focused:
            label = f"[{ACCENT}]{label}[/]"
        line = f"{marker} {label}"
        if i == cursor and option.description:
            line += f"\n    [#777777]{escape(option.description)}[/]"
        lines.append(line)
    return "\n".join(lines)


def controls_text(state: NavigationState) -> str:
    """One-line key hint for the current focus."""
    if state.in_workspace:
        return "Enter: Select option | Esc: Back to repos | Tab: Navigate | Arrow Keys: Move selection"
    if state.focused_pane is Pane.PROJECTS:
        return "Enter: Load repos | Tab: Next | Arrow Keys: Move selection"
    if state.focused_pane is Pane.REPOSITORIES:
        return "Enter: Open workspace | Tab: Navigate | Arrow Keys: Move selection"
    return "Tab: Navigate | Arrow Keys: Move selection"


def pane_title(base: str, loading: bool, error: str | None) -> str:
    if loading:
        return f"{base} [dim](loading…)[/]"
    if error:
        return f"{base} [#b84040](error)[/]"
    return base


# ─── Panes ───────────────────────────────────────────────────────────────────


class PaneBox(Static):
    """Bordered region whose content is redrawn from the navigation state."""

    def show(self, title: str, body: str, focused: bool) -> None:
        self.border_title = title
        self.set_class(focused, "focused")
        self.update(body)


def _list_body(options: list[Option], cursor: int, selected: int | None,
               focused: bool, loading: bool, error: str | None, empty: str) -> str:
    body = render_options(options, cursor, selected, focused)
    if error:
        body = f"[#b84040]{escape(error)}[/]" + (f"\n\n{body}" if body else "")
    elif not options:
        body = "[#666666]Loading…[/]" if loading else f"[#666666]{empty}[/]"
    return body


def workspace_body(state: NavigationState) -> str:
    if not state.in_workspace or state.selected_repo is None:
        lines = [LOGO, ""]
        if state.selected_project:
            lines.append(f"Selected Project: {escape(state.selected_project.label)}")
        if state.selected_repo:
            lines.append(f"Selected Repo: {escape(state.selected_repo.label)}")
        lines.append("[#888888]Select a repo to view options[/]")
        return "\n".join(lines)

    lines = [
        render_options(
            state.workspace_options,
            state.workspace_cursor,
            state.selected_workspace_index,
            state.focused_pane is Pane.WORKSPACE,
        )
    ]
    if state.active_action:
        titles = {action_id: label for action_id, label, _ in WORKSPACE_ACTIONS}
        lines.append("")
        lines.append(f"[#777777]{titles.get(state.active_action, state.active_action)}[/]")
        if state.loading_action:
            lines.append("  [#666666]Loading…[/]")
        elif state.action_error:
            lines.append(f"  [#b84040]{escape(state.action_error)}[/]")
        elif not state.action_results:
            lines.append("  [#666666]Nothing found.[/]")
        for result in state.action_results:
            desc = f"  [#888888]{escape(result.description)}[/]" if result.description else ""
            lines.append(f"  [#CCCCCC]{escape(result.label)}[/]{desc}")
    return "\n".join(lines)


# ─── Main application ────────────────────────────────────────────────────────


class AztuiApp(App):
    """Browse Azure DevOps projects, repositories and their workspace actions."""

    CSS_PATH = "styles.tcss"
    TITLE = "aztui"

    BINDINGS = [
        Binding("tab", "next_pane", "Next pane", show=True, priority=True),
        Binding("up,k", "move(-1)", "Up", show=False),
        Binding("down,j", "move(1)", "Down", show=False),
        Binding("enter", "confirm", "Select", show=True),
        Binding("escape", "back", "Back", show=True, priority=True),
        Binding("r", "reload", "Refresh", show=True),
        Binding("c", "configure", "Credentials", show=True),
        Binding("q", "quit", "Quit", show=True),
    ]

    NAVIGATION_ACTIONS = {"next_pane", "move", "confirm", "back", "reload", "configure"}

    def __init__(
        self,
        catalog: RemoteCatalog | None = None,
        config: AztuiConfig | None = None,
        focus_policy: WorkspaceFocusPolicy | str = WorkspaceFocusPolicy.BLOCKED,
        detect: bool = True,
        cwd: Path | None = None,
    ):
        super().__init__()
        self.config = config or AztuiConfig()
        self.settings = self.config.load()
        self.catalog = catalog
        self._owns_catalog = False
        self.detect = detect
        self.cwd = cwd or Path.cwd()
        self.store = SelectionStore()
        self.orchestrator = LoadOrchestrator(self.store, catalog)
        self.controller = FocusController(self.store, self.orchestrator, policy=focus_policy)

    def compose(self) -> ComposeResult:
        with Horizontal(id="body"):
            with Vertical(id="left-column"):
                yield PaneBox(id="projects-box")
                yield PaneBox(id="repos-box")
            yield PaneBox(id="workspace-box")
        yield Static("", id="controls")
        yield Footer()

    def on_mount(self) -> None:
        self.store.subscribe(self.refresh_panes)
        self.refresh_panes()
        if self.catalog is not None:
            self._start()
        elif self.settings.is_complete():
            self._connect(self.settings)
        else:
            self.action_configure()

    async def on_unmount(self) -> None:
        await self.orchestrator.close()
        if self._owns_catalog:
            await self.catalog.aclose()

    # ── wiring ───────────────────────────────────────────────────────────

    def _connect(self, settings: AztuiSettings) -> None:
        self.settings = settings
        self.catalog = AzureDevOpsClient(settings.azure_org_url, settings.azure_pat)
        self._owns_catalog = True
        self.orchestrator.catalog = self.catalog
        self._start()

    def _start(self) -> None:
        self.orchestrator.request_projects()
        if self.detect and self.settings.azure_org_url:
            self.run_worker(self._autodetect(), exclusive=True, group="autodetect")

    async def _autodetect(self) -> None:
        try:
            result = await detect_project_and_repo(
                self.catalog, self.settings.azure_org_url, self.cwd
            )
        except AztuiError as e:
            logger.warning("Autodetect failed: %s", e)
            return
        if await open_detected(self.controller, self.orchestrator, result):
            self.notify(f"Opened {result.project.name}/{result.repository.name}")

    # ── rendering ────────────────────────────────────────────────────────

    def refresh_panes(self) -> None:
        state = self.store.snapshot()
        focused = state.focused_pane

        self.query_one("#projects-box", PaneBox).show(
            pane_title("projects", state.loading_projects, state.projects_error),
            _list_body(
                state.projects, state.project_cursor, state.selected_project_index,
                focused is Pane.PROJECTS, state.loading_projects, state.projects_error,
                "No projects found.",
            ),
            focused is Pane.PROJECTS,
        )

        repos_title = "repos"
        if state.selected_project:
            repos_title = f"repos - {escape(state.selected_project.label)}"
        self.query_one("#repos-box", PaneBox).show(
            pane_title(repos_title, state.loading_repositories, state.repositories_error),
            _list_body(
                state.repositories, state.repo_cursor, state.selected_repo_index,
                focused is Pane.REPOSITORIES, state.loading_repositories,
                state.repositories_error,
                "No repositories." if state.selected_project else "Select a project.",
            ),
            focused is Pane.REPOSITORIES,
        )

        workspace_title = "workspace"
        if state.in_workspace and state.selected_repo:
            workspace_title = f"{escape(state.selected_repo.label)} - options"
        self.query_one("#workspace-box", PaneBox).show(
            workspace_title, workspace_body(state), focused is Pane.WORKSPACE
        )
        self.query_one("#controls", Static).update(f"[#888888]{controls_text(state)}[/]")

    # ── actions ──────────────────────────────────────────────────────────

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        # Navigation keys belong to the modal while one is open
        if action in self.NAVIGATION_ACTIONS and len(self.screen_stack) > 1:
            return False
        return True

    def action_next_pane(self) -> None:
        self.controller.dispatch(Command.NEXT_PANE)

    def action_move(self, delta: int) -> None:
        self.controller.dispatch(Command.MOVE, delta)

    def action_confirm(self) -> None:
        self.controller.dispatch(Command.CONFIRM)

    def action_back(self) -> None:
        self.controller.dispatch(Command.BACK)

    def action_reload(self) -> None:
        if self.catalog is None:
            self.notify("No credentials configured", severity="warning")
            return
        self.orchestrator.request_projects()

    def action_configure(self) -> None:
        self.push_screen(CredentialsModal(self.settings), callback=self._on_credentials)

    def _on_credentials(self, result: dict | None) -> None:
        if not result:
            if self.catalog is None:
                self.notify("Azure DevOps credentials are required", severity="warning")
            return
        settings = self.settings.model_copy(update=result)
        try:
            self.config.save(settings)
        except AztuiError as e:
            self.notify(f"Error: {e}", severity="error")
            return
        self.run_worker(self._reconnect(settings), exclusive=True, group="connect")
        self.notify("Credentials saved")

    async def _reconnect(self, settings: AztuiSettings) -> None:
        """Drop loads issued against the old client before switching to a new one."""
        await self.orchestrator.close()
        self.store.set_loading(LoadKind.REPOSITORIES, False)
        self.store.set_loading(LoadKind.ACTIONS, False)
        if self._owns_catalog:
            await self.catalog.aclose()
        self._connect(settings)


def run_tui(
    config: AztuiConfig | None = None,
    focus_policy: WorkspaceFocusPolicy | str = WorkspaceFocusPolicy.BLOCKED,
    detect: bool = True,
) -> None:
    """Entry point for the TUI."""
    app = AztuiApp(config=config, focus_policy=focus_policy, detect=detect)
    app.run()
