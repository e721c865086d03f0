"""Remote loads triggered by navigation, with stale-result discarding."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from aztui.core.catalog import RemoteCatalog
from aztui.core.models import LoadKind, Option, project_option, repository_option
from aztui.core.selection_store import SelectionStore
from aztui.core.workspace import fetch_action_results

logger = logging.getLogger(__name__)


class LoadOutcome(str, Enum):
    """How a finished load was resolved."""

    APPLIED = "applied"
    STALE = "stale"
    FAILED = "failed"


class LoadOrchestrator:
    """Issues catalog calls and commits their results only while still relevant.

    Every request advances its stream's generation in the store. When a call
    returns, the result is committed only if no newer request of the same
    kind was issued meanwhile and the selection it was fetched for is still
    in place. Calls are never aborted; superseded results are dropped.
    """

    def __init__(self, store: SelectionStore, catalog: Optional[RemoteCatalog] = None):
        self.store = store
        self.catalog = catalog
        self._pending: set[asyncio.Task] = set()

    # ── requests (fire-and-forget) ───────────────────────────────────────

    def request_projects(self) -> asyncio.Task:
        generation = self.store.next_generation(LoadKind.PROJECTS)
        self.store.set_loading(LoadKind.PROJECTS, True)
        return self._spawn(self.load_projects(generation))

    def request_repositories(self, project_id: str) -> asyncio.Task:
        generation = self.store.next_generation(LoadKind.REPOSITORIES)
        self.store.set_loading(LoadKind.REPOSITORIES, True)
        return self._spawn(self.load_repositories(project_id, generation))

    def request_action(self, action_id: str) -> Optional[asyncio.Task]:
        state = self.store.snapshot()
        project, repo = state.selected_project, state.selected_repo
        if not state.in_workspace or project is None or repo is None:
            return None
        self.store.begin_action(action_id)
        generation = self.store.next_generation(LoadKind.ACTIONS)
        self.store.set_loading(LoadKind.ACTIONS, True)
        return self._spawn(self.load_action(action_id, project.id, repo, generation))

    # ── loads ────────────────────────────────────────────────────────────

    async def load_projects(self, generation: int) -> LoadOutcome:
        async def fetch() -> list[Option]:
            return [project_option(p) for p in await self.catalog.list_projects()]

        return await self._load(
            "projects",
            fetch,
            is_current=lambda: self.store.generation(LoadKind.PROJECTS) == generation,
            apply=self.store.set_projects,
            fail=self.store.set_projects_error,
        )

    async def load_repositories(self, project_id: str, generation: int) -> LoadOutcome:
        async def fetch() -> list[Option]:
            repos = await self.catalog.list_repositories(project_id)
            return [repository_option(r) for r in repos]

        def is_current() -> bool:
            # A matching generation is not enough: the project may have been
            # reselected without a new request reaching the catalog yet.
            return (
                self.store.generation(LoadKind.REPOSITORIES) == generation
                and self.store.selected_project_id() == project_id
            )

        return await self._load(
            f"repositories of {project_id}",
            fetch,
            is_current=is_current,
            apply=self.store.set_repositories,
            fail=self.store.set_repositories_error,
        )

    async def load_action(
        self, action_id: str, project_id: str, repo: Option, generation: int
    ) -> LoadOutcome:
        def is_current() -> bool:
            state = self.store.snapshot()
            return (
                self.store.generation(LoadKind.ACTIONS) == generation
                and state.in_workspace
                and state.active_action == action_id
                and self.store.selected_repo_id() == repo.id
            )

        return await self._load(
            f"{action_id} of {repo.label}",
            lambda: fetch_action_results(self.catalog, action_id, project_id, repo),
            is_current=is_current,
            apply=self.store.set_action_results,
            fail=self.store.set_action_error,
        )

    async def _load(
        self,
        what: str,
        fetch: Callable[[], Awaitable[list[Option]]],
        is_current: Callable[[], bool],
        apply: Callable[[list[Option]], None],
        fail: Callable[[str], None],
    ) -> LoadOutcome:
        try:
            result = await fetch()
        except Exception as e:
            if not is_current():
                logger.debug("Discarding stale failure for %s: %s", what, e)
                return LoadOutcome.STALE
            logger.warning("Failed to load %s: %s", what, e)
            fail(str(e) or type(e).__name__)
            return LoadOutcome.FAILED

        if not is_current():
            logger.debug("Discarding stale result for %s (%d items)", what, len(result))
            return LoadOutcome.STALE
        apply(result)
        logger.debug("Loaded %s (%d items)", what, len(result))
        return LoadOutcome.APPLIED

    # ── task bookkeeping ─────────────────────────────────────────────────

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def busy(self) -> bool:
        return bool(self._pending)

    async def wait_idle(self) -> None:
        """Wait until every load issued so far (and any they triggered) finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding loads; their results would be discarded anyway."""
        for task in list(self._pending):
            task.cancel()
        await self.wait_idle()
