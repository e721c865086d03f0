"""Single owner of the navigation state."""

from typing import Callable, Iterable, Optional

from aztui.core.models import LoadKind, NavigationState, Option, Pane


def _clamp(index: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


def _relocate(options: list[Option], previous: Optional[Option]) -> Optional[int]:
    if previous is None:
        return None
    for i, option in enumerate(options):
        if option.id == previous.id:
            return i
    return None


class SelectionStore:
    """Holds NavigationState and applies every mutation to it.

    Each public method leaves the state consistent on return: the clean-up a
    transition implies (dropping repositories when the project changes,
    leaving workspace mode when its repository goes away, and so on) happens
    inside the same call. Out-of-range indices are ignored and cursors are
    clamped; nothing here raises.
    """

    def __init__(self, state: Optional[NavigationState] = None):
        self._state = state or NavigationState()
        self._listeners: list[Callable[[], None]] = []

    # ── reading ──────────────────────────────────────────────────────────

    def snapshot(self) -> NavigationState:
        """Deep copy of the current state for rendering and inspection."""
        return self._state.model_copy(deep=True)

    def generation(self, kind: LoadKind) -> int:
        return getattr(self._state.load_generation, LoadKind(kind).value)

    def selected_project_id(self) -> Optional[str]:
        project = self._state.selected_project
        return project.id if project else None

    def selected_repo_id(self) -> Optional[str]:
        repo = self._state.selected_repo
        return repo.id if repo else None

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ── focus and cursors ────────────────────────────────────────────────

    def set_focus(self, pane: Pane) -> None:
        pane = Pane(pane)
        if pane is Pane.WORKSPACE and not self._state.in_workspace:
            return
        self._state.focused_pane = pane
        self._changed()

    def highlight(self, pane: Pane, index: int) -> None:
        """Move a pane's cursor without committing a selection."""
        s = self._state
        pane = Pane(pane)
        cursor = _clamp(index, len(s.options_for(pane)))
        if pane is Pane.PROJECTS:
            s.project_cursor = cursor
        elif pane is Pane.REPOSITORIES:
            s.repo_cursor = cursor
        else:
            s.workspace_cursor = cursor
        self._changed()

    # ── projects ─────────────────────────────────────────────────────────

    def set_projects(self, projects: Iterable[Option]) -> None:
        """Replace the project list, keeping the selection if it survived."""
        s = self._state
        previous = s.selected_project
        s.projects = list(projects)
        s.projects_error = None
        s.loading_projects = False
        s.project_cursor = _clamp(s.project_cursor, len(s.projects))
        if previous is not None:
            index = _relocate(s.projects, previous)
            if index is None:
                s.selected_project_index = None
                self._clear_repositories()
            else:
                s.selected_project_index = index
        self._changed()

    def set_projects_error(self, message: str) -> None:
        self._state.projects_error = message
        self._state.loading_projects = False
        self._changed()

    def select_project(self, index: int) -> None:
        """Commit a project selection. Its repositories and workspace are dropped."""
        s = self._state
        if not 0 <= index < len(s.projects):
            return
        s.selected_project_index = index
        s.project_cursor = index
        self._clear_repositories()
        self._changed()

    def _clear_repositories(self) -> None:
        s = self._state
        s.repositories = []
        s.selected_repo_index = None
        s.repo_cursor = 0
        s.repositories_error = None
        s.loading_repositories = False
        self._leave_workspace()

    # ── repositories ─────────────────────────────────────────────────────

    def set_repositories(self, repositories: Iterable[Option]) -> None:
        s = self._state
        previous = s.selected_repo
        s.repositories = list(repositories)
        s.repositories_error = None
        s.loading_repositories = False
        s.repo_cursor = _clamp(s.repo_cursor, len(s.repositories))
        if previous is not None:
            index = _relocate(s.repositories, previous)
            s.selected_repo_index = index
            if index is None:
                self._leave_workspace()
        self._changed()

    def set_repositories_error(self, message: str) -> None:
        self._state.repositories_error = message
        self._state.loading_repositories = False
        self._changed()

    def select_repository(self, index: int) -> None:
        """Commit a repository selection. Any open workspace belongs to the old one."""
        s = self._state
        if not 0 <= index < len(s.repositories):
            return
        s.selected_repo_index = index
        s.repo_cursor = index
        self._leave_workspace()
        self._changed()

    # ── workspace ────────────────────────────────────────────────────────

    def enter_workspace(self, options: Iterable[Option]) -> None:
        """Open workspace mode. Ignored unless a project and repository are selected."""
        s = self._state
        if s.selected_project is None or s.selected_repo is None:
            return
        s.workspace_options = list(options)
        s.selected_workspace_index = None
        s.workspace_cursor = 0
        self._clear_action()
        s.in_workspace = True
        s.focused_pane = Pane.WORKSPACE
        self._changed()

    def exit_workspace(self) -> None:
        if not self._state.in_workspace:
            return
        self._leave_workspace()
        self._changed()

    def _leave_workspace(self) -> None:
        s = self._state
        s.workspace_options = []
        s.selected_workspace_index = None
        s.workspace_cursor = 0
        self._clear_action()
        if s.in_workspace or s.focused_pane is Pane.WORKSPACE:
            s.focused_pane = Pane.REPOSITORIES
        s.in_workspace = False

    def select_workspace_option(self, index: int) -> None:
        s = self._state
        if not s.in_workspace or not 0 <= index < len(s.workspace_options):
            return
        s.selected_workspace_index = index
        s.workspace_cursor = index
        self._changed()

    # ── workspace action results ─────────────────────────────────────────

    def begin_action(self, action_id: str) -> None:
        s = self._state
        if not s.in_workspace:
            return
        s.active_action = action_id
        s.action_results = []
        s.action_error = None
        self._changed()

    def set_action_results(self, results: Iterable[Option]) -> None:
        s = self._state
        if not s.in_workspace:
            return
        s.action_results = list(results)
        s.action_error = None
        s.loading_action = False
        self._changed()

    def set_action_error(self, message: str) -> None:
        if not self._state.in_workspace:
            return
        self._state.action_error = message
        self._state.loading_action = False
        self._changed()

    def _clear_action(self) -> None:
        s = self._state
        s.active_action = None
        s.action_results = []
        s.action_error = None
        s.loading_action = False

    # ── load bookkeeping ─────────────────────────────────────────────────

    def next_generation(self, kind: LoadKind) -> int:
        """Advance a load stream's generation and return the new value."""
        kind = LoadKind(kind)
        generation = self.generation(kind) + 1
        setattr(self._state.load_generation, kind.value, generation)
        return generation

    def set_loading(self, kind: LoadKind, loading: bool) -> None:
        kind = LoadKind(kind)
        if kind is LoadKind.PROJECTS:
            self._state.loading_projects = loading
        elif kind is LoadKind.REPOSITORIES:
            self._state.loading_repositories = loading
        else:
            self._state.loading_action = loading
        self._changed()
