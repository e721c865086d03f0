"""Keyboard-level navigation: focus cycling, cursor movement, confirm and back."""

from enum import Enum
from typing import Callable, Optional

from aztui.core.loader import LoadOrchestrator
from aztui.core.models import Pane
from aztui.core.selection_store import SelectionStore
from aztui.core.workspace import workspace_options


class Command(str, Enum):
    """Discrete navigation intents, independent of the keys that produce them."""

    NEXT_PANE = "next_pane"
    MOVE = "move"
    CONFIRM = "confirm"
    BACK = "back"


class WorkspaceFocusPolicy(str, Enum):
    """What NEXT_PANE does while workspace mode is open."""

    BLOCKED = "blocked"  # stays on the current pane
    CYCLE = "cycle"  # cycles projects, repositories, workspace


FOCUS_ORDER = [Pane.PROJECTS, Pane.REPOSITORIES]
WORKSPACE_FOCUS_ORDER = [Pane.PROJECTS, Pane.REPOSITORIES, Pane.WORKSPACE]


class FocusController:
    """Maps navigation commands onto SelectionStore transitions."""

    def __init__(
        self,
        store: SelectionStore,
        orchestrator: LoadOrchestrator,
        policy: WorkspaceFocusPolicy = WorkspaceFocusPolicy.BLOCKED,
        on_action: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.policy = WorkspaceFocusPolicy(policy)
        self.on_action = on_action

    def dispatch(self, command: Command, delta: int = 0) -> Optional[str]:
        command = Command(command)
        if command is Command.NEXT_PANE:
            self.advance_focus()
        elif command is Command.MOVE:
            self.move(delta)
        elif command is Command.CONFIRM:
            return self.confirm()
        elif command is Command.BACK:
            self.back()
        return None

    def advance_focus(self) -> None:
        state = self.store.snapshot()
        if state.in_workspace:
            if self.policy is WorkspaceFocusPolicy.BLOCKED:
                return
            order = WORKSPACE_FOCUS_ORDER
        else:
            order = FOCUS_ORDER
        current = order.index(state.focused_pane) if state.focused_pane in order else -1
        self.store.set_focus(order[(current + 1) % len(order)])

    def focus(self, pane: Pane) -> None:
        self.store.set_focus(pane)

    def move(self, delta: int) -> None:
        """Move the focused pane's cursor by ``delta`` rows."""
        state = self.store.snapshot()
        pane = state.focused_pane
        self.store.highlight(pane, state.cursor_for(pane) + delta)

    def highlight(self, pane: Pane, index: int) -> None:
        self.store.highlight(pane, index)

    def confirm(self) -> Optional[str]:
        """Commit the highlighted row of the focused pane.

        Returns the id of the project, repository or workspace action that
        was confirmed, or None when the pane had nothing highlighted.
        """
        state = self.store.snapshot()
        pane = state.focused_pane
        option = state.highlighted(pane)
        if option is None:
            return None

        if pane is Pane.PROJECTS:
            self.store.select_project(state.project_cursor)
            self.store.set_focus(Pane.REPOSITORIES)
            self.orchestrator.request_repositories(option.id)
        elif pane is Pane.REPOSITORIES:
            if state.selected_project is None:
                return None
            self.store.select_repository(state.repo_cursor)
            self.store.enter_workspace(workspace_options(option))
        else:
            self.store.select_workspace_option(state.workspace_cursor)
            self.orchestrator.request_action(option.id)
            if self.on_action:
                self.on_action(option.id)
        return option.id

    def back(self) -> None:
        if self.store.snapshot().in_workspace:
            self.store.exit_workspace()
