"""Tests for SelectionStore transitions."""

import pytest

from aztui.core.models import LoadKind, Option, Pane
from aztui.core.selection_store import SelectionStore
from aztui.core.workspace import workspace_options


def opts(*ids):
    return [Option(id=i, label=i.upper()) for i in ids]


@pytest.fixture
def store():
    return SelectionStore()


@pytest.fixture
def in_workspace(store):
    store.set_projects(opts("p1", "p2"))
    store.select_project(0)
    store.set_repositories(opts("r1", "r2"))
    store.select_repository(1)
    store.enter_workspace(workspace_options(Option(id="r2", label="R2")))
    return store


def test_initial_state(store):
    state = store.snapshot()
    assert state.focused_pane is Pane.PROJECTS
    assert state.projects == []
    assert state.selected_project_index is None
    assert not state.in_workspace


def test_snapshot_is_a_copy(store):
    store.set_projects(opts("p1"))
    snap = store.snapshot()
    snap.projects.clear()
    snap.focused_pane = Pane.REPOSITORIES
    assert len(store.snapshot().projects) == 1
    assert store.snapshot().focused_pane is Pane.PROJECTS


def test_select_project_clears_repositories_and_workspace(in_workspace):
    store = in_workspace
    store.select_project(1)
    state = store.snapshot()
    assert state.selected_project.id == "p2"
    assert state.repositories == []
    assert state.selected_repo_index is None
    assert not state.in_workspace
    assert state.workspace_options == []
    assert state.focused_pane is Pane.REPOSITORIES


def test_select_out_of_range_is_ignored(store):
    store.set_projects(opts("p1"))
    store.select_project(5)
    store.select_project(-1)
    assert store.snapshot().selected_project_index is None

    store.select_project(0)
    store.select_repository(0)
    assert store.snapshot().selected_repo_index is None


def test_highlight_clamps_cursor(store):
    store.set_projects(opts("p1", "p2", "p3"))
    store.highlight(Pane.PROJECTS, 10)
    assert store.snapshot().project_cursor == 2
    store.highlight(Pane.PROJECTS, -4)
    assert store.snapshot().project_cursor == 0
    store.highlight(Pane.REPOSITORIES, 3)
    assert store.snapshot().repo_cursor == 0


def test_highlight_does_not_select(store):
    store.set_projects(opts("p1", "p2"))
    store.highlight(Pane.PROJECTS, 1)
    assert store.snapshot().selected_project_index is None


def test_focus_workspace_requires_workspace_mode(store):
    store.set_focus(Pane.WORKSPACE)
    assert store.snapshot().focused_pane is Pane.PROJECTS
    store.set_focus(Pane.REPOSITORIES)
    assert store.snapshot().focused_pane is Pane.REPOSITORIES


def test_enter_workspace_requires_both_selections(store):
    store.set_projects(opts("p1"))
    store.enter_workspace(opts("a"))
    assert not store.snapshot().in_workspace

    store.select_project(0)
    store.set_repositories(opts("r1"))
    store.enter_workspace(opts("a"))
    assert not store.snapshot().in_workspace


def test_enter_workspace_focuses_workspace(in_workspace):
    state = in_workspace.snapshot()
    assert state.in_workspace
    assert state.focused_pane is Pane.WORKSPACE
    assert [o.id for o in state.workspace_options] == ["pull_requests", "branches", "pipelines"]
    assert state.workspace_cursor == 0
    assert state.selected_workspace_index is None


def test_exit_workspace_keeps_selections(in_workspace):
    in_workspace.exit_workspace()
    state = in_workspace.snapshot()
    assert not state.in_workspace
    assert state.focused_pane is Pane.REPOSITORIES
    assert state.selected_project.id == "p1"
    assert state.selected_repo.id == "r2"
    assert state.workspace_options == []


def test_exit_workspace_twice_is_a_no_op(in_workspace):
    in_workspace.exit_workspace()
    first = in_workspace.snapshot()
    in_workspace.exit_workspace()
    assert in_workspace.snapshot() == first


def test_set_projects_relocates_selection_by_id(store):
    store.set_projects(opts("p1", "p2"))
    store.select_project(1)
    store.set_repositories(opts("r1"))
    store.set_projects(opts("p0", "p1", "p2"))
    state = store.snapshot()
    assert state.selected_project.id == "p2"
    assert state.selected_project_index == 2
    assert [r.id for r in state.repositories] == ["r1"]


def test_set_projects_drops_vanished_selection(in_workspace):
    in_workspace.set_projects(opts("p2"))
    state = in_workspace.snapshot()
    assert state.selected_project_index is None
    assert state.repositories == []
    assert not state.in_workspace


def test_set_repositories_drops_vanished_repo_and_workspace(in_workspace):
    in_workspace.set_repositories(opts("r1"))
    state = in_workspace.snapshot()
    assert state.selected_repo_index is None
    assert not state.in_workspace
    assert state.focused_pane is Pane.REPOSITORIES


def test_errors_clear_loading_and_success_clears_error(store):
    store.set_loading(LoadKind.PROJECTS, True)
    store.set_projects_error("boom")
    state = store.snapshot()
    assert state.projects_error == "boom"
    assert not state.loading_projects

    store.set_projects(opts("p1"))
    assert store.snapshot().projects_error is None


def test_action_results_ignored_outside_workspace(store):
    store.begin_action("branches")
    store.set_action_results(opts("x"))
    store.set_action_error("nope")
    state = store.snapshot()
    assert state.active_action is None
    assert state.action_results == []
    assert state.action_error is None


def test_action_results_inside_workspace(in_workspace):
    in_workspace.select_workspace_option(1)
    in_workspace.begin_action("branches")
    in_workspace.set_action_results(opts("main"))
    state = in_workspace.snapshot()
    assert state.selected_workspace_option.id == "branches"
    assert state.active_action == "branches"
    assert [o.id for o in state.action_results] == ["main"]


def test_generations_are_independent(store):
    assert store.next_generation(LoadKind.PROJECTS) == 1
    assert store.next_generation(LoadKind.PROJECTS) == 2
    assert store.next_generation(LoadKind.REPOSITORIES) == 1
    assert store.generation(LoadKind.ACTIONS) == 0


def test_subscribe_and_unsubscribe(store):
    calls = []
    unsubscribe = store.subscribe(lambda: calls.append(1))
    store.set_projects(opts("p1"))
    store.highlight(Pane.PROJECTS, 0)
    assert len(calls) == 2
    unsubscribe()
    store.select_project(0)
    assert len(calls) == 2
