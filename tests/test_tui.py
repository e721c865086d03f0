"""Tests for the TUI rendering helpers and key handling."""

from unittest.mock import patch

import pytest

from aztui.core.config import AztuiConfig, AztuiSettings
from aztui.core.errors import ConfigError
from aztui.core.models import NavigationState, Option, Pane
from aztui.core.workspace import workspace_options
from aztui.tui.app import AztuiApp, controls_text, pane_title, render_options, workspace_body

OPTIONS = [
    Option(id="a", label="Alpha", description="first"),
    Option(id="b", label="Beta", description="second"),
]


def test_render_options_marks_cursor_when_focused():
    text = render_options(OPTIONS, cursor=1, selected=None, focused=True)
    lines = text.splitlines()
    assert lines[0].startswith("  ")
    assert lines[1].startswith("›")
    assert "second" in text
    assert "first" not in text


def test_render_options_without_focus_has_no_marker():
    text = render_options(OPTIONS, cursor=0, selected=0, focused=False)
    assert "›" not in text
    assert "[bold #FFFFFF]Alpha[/]" in text


def test_render_options_escapes_markup():
    text = render_options([Option(id="x", label="[red]x")], 0, None, True)
    assert "\\[red]x" in text


def test_controls_text_per_pane():
    assert controls_text(NavigationState()).startswith("Enter: Load repos")
    assert controls_text(NavigationState(focused_pane=Pane.REPOSITORIES)).startswith(
        "Enter: Open workspace"
    )
    assert "Esc: Back to repos" in controls_text(NavigationState(in_workspace=True))


def test_pane_title():
    assert pane_title("projects", False, None) == "projects"
    assert "loading" in pane_title("projects", True, "boom")
    assert "error" in pane_title("projects", False, "boom")


def test_workspace_body_before_and_inside_workspace():
    state = NavigationState(projects=OPTIONS, selected_project_index=0)
    assert "Selected Project: Alpha" in workspace_body(state)
    assert "Select a repo" in workspace_body(state)

    repo = Option(id="r", label="core")
    state = NavigationState(
        projects=OPTIONS,
        selected_project_index=0,
        repositories=[repo],
        selected_repo_index=0,
        workspace_options=workspace_options(repo),
        in_workspace=True,
        focused_pane=Pane.WORKSPACE,
        active_action="branches",
        action_results=[Option(id="refs/heads/main", label="main", description="abc12345")],
    )
    body = workspace_body(state)
    assert "Pull requests" in body
    assert "Branches" in body
    assert "main" in body
    assert "abc12345" in body


@pytest.fixture
def app(tmp_path, catalog):
    config = AztuiConfig(tmp_path / "cfg", env_file=tmp_path / ".env", environ={})
    return AztuiApp(catalog=catalog, config=config, detect=False)


@pytest.mark.asyncio
async def test_keyboard_walk_to_workspace_and_back(app):
    async with app.run_test() as pilot:
        await app.orchestrator.wait_idle()
        assert [p.id for p in app.store.snapshot().projects] == ["p-alpha", "p-beta"]

        await pilot.press("enter")
        await app.orchestrator.wait_idle()
        await pilot.pause()
        state = app.store.snapshot()
        assert state.selected_project.id == "p-alpha"
        assert state.focused_pane is Pane.REPOSITORIES
        assert [r.id for r in state.repositories] == ["r-api", "r-web"]

        await pilot.press("down", "enter")
        state = app.store.snapshot()
        assert state.in_workspace
        assert state.selected_repo.id == "r-web"

        await pilot.press("tab")
        assert app.store.snapshot().focused_pane is Pane.WORKSPACE

        await pilot.press("escape")
        state = app.store.snapshot()
        assert not state.in_workspace
        assert state.focused_pane is Pane.REPOSITORIES


@pytest.mark.asyncio
async def test_tab_cycles_panes_outside_workspace(app):
    async with app.run_test() as pilot:
        await app.orchestrator.wait_idle()
        await pilot.press("tab")
        assert app.store.snapshot().focused_pane is Pane.REPOSITORIES
        await pilot.press("tab")
        assert app.store.snapshot().focused_pane is Pane.PROJECTS


@pytest.mark.asyncio
async def test_failed_credentials_save_keeps_current_catalog(app, catalog):
    async with app.run_test() as pilot:
        await app.orchestrator.wait_idle()
        with patch.object(AztuiConfig, "save", side_effect=ConfigError("disk full")), \
                patch("aztui.tui.app.AzureDevOpsClient") as client_cls:
            app._on_credentials({"azure_org_url": "https://dev.azure.com/other", "azure_pat": "x"})
            await pilot.pause()
            await app.workers.wait_for_complete()

        client_cls.assert_not_called()
        assert app.catalog is catalog
        assert not app._owns_catalog


@pytest.mark.asyncio
async def test_saved_credentials_switch_catalog(app, projects, fake_catalog):
    fresh = fake_catalog(projects=projects[:1])
    async with app.run_test() as pilot:
        await app.orchestrator.wait_idle()
        with patch("aztui.tui.app.AzureDevOpsClient", return_value=fresh) as client_cls:
            app._on_credentials({"azure_org_url": "https://dev.azure.com/other", "azure_pat": "x"})
            await pilot.pause()
            await app.workers.wait_for_complete()
            await app.orchestrator.wait_idle()

        client_cls.assert_called_once_with("https://dev.azure.com/other", "x")
        assert app.catalog is fresh
        assert [p.id for p in app.store.snapshot().projects] == ["p-alpha"]


@pytest.mark.asyncio
async def test_reconnect_cancels_loads_on_old_catalog(app, catalog, projects, fake_catalog):
    fresh = fake_catalog(projects=projects)
    async with app.run_test() as pilot:
        await app.orchestrator.wait_idle()
        catalog.hold(("repositories", "p-alpha"))
        await pilot.press("enter")
        assert app.store.snapshot().loading_repositories
        assert ("repositories", "p-alpha") in catalog.calls

        settings = AztuiSettings(azure_org_url="https://dev.azure.com/other", azure_pat="x")
        with patch("aztui.tui.app.AzureDevOpsClient", return_value=fresh):
            await app._reconnect(settings)
        await app.orchestrator.wait_idle()

        state = app.store.snapshot()
        assert app.catalog is fresh
        assert app.orchestrator.catalog is fresh
        assert not state.loading_repositories
        assert state.repositories_error is None
        assert state.repositories == []
        assert fresh.calls == ["projects"]


@pytest.mark.asyncio
async def test_wrongly_typed_config_file_does_not_break_startup(tmp_path, catalog):
    (tmp_path / "cfg").mkdir()
    (tmp_path / "cfg" / "config.json").write_text('{"azure_pat": 5, "focus_policy": []}')
    config = AztuiConfig(tmp_path / "cfg", env_file=tmp_path / ".env", environ={})
    app = AztuiApp(catalog=catalog, config=config, detect=False)
    assert app.settings == AztuiSettings()
    async with app.run_test():
        await app.orchestrator.wait_idle()
        assert len(app.store.snapshot().projects) == 2
