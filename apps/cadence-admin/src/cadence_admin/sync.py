"""Voice profile sync: diff -> resolve affected agents -> concurrent dispatch.

One `synchronize` call moves through IDLE, DIFFING, RESOLVING, DISPATCHING
and DONE in that order. An empty diff jumps straight to DONE without touching
the network. Every affected agent gets its own update call; all calls run
concurrently and each outcome lands in the report on its own, so one failed
agent never hides or cancels its siblings.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from enum import Enum
from typing import Protocol

from cadence_common.logging import get_logger

from .differ import detect_changed_profiles
from .errors import ResolutionError, ServiceError
from .provider_config import build_agent_update
from .resolver import AgentSyncTask, MatchMode, resolve_affected_agents
from .schemas import AgentSyncResult, SyncReport, VoiceProfile, WorkspaceAgentBinding

log = get_logger(__name__)


class AgentAPI(Protocol):
    async def update_agent(self, agent_id: str, payload: dict) -> dict: ...


class BindingSource(Protocol):
    async def list_all(self) -> list[WorkspaceAgentBinding]: ...


class SyncState(str, Enum):
    IDLE = "idle"
    DIFFING = "diffing"
    RESOLVING = "resolving"
    DISPATCHING = "dispatching"
    DONE = "done"


_ORDER = list(SyncState)


class SyncRun:
    """State of a single `synchronize` invocation."""

    def __init__(self) -> None:
        self.state = SyncState.IDLE
        self.history: list[SyncState] = [SyncState.IDLE]

    def advance(self, state: SyncState) -> None:
        if _ORDER.index(state) <= _ORDER.index(self.state):
            raise RuntimeError(f"invalid sync transition {self.state.value} -> {state.value}")
        log.debug("sync_state", previous=self.state.value, state=state.value)
        self.state = state
        self.history.append(state)


class SyncOrchestrator:
    def __init__(
        self,
        agent_api: AgentAPI,
        elevenlabs_api_key: str | None = None,
        match_mode: MatchMode = MatchMode.SELECTED_VOICE,
    ) -> None:
        self._agent_api = agent_api
        self._elevenlabs_api_key = elevenlabs_api_key
        self._match_mode = match_mode

    async def synchronize(
        self,
        before: Sequence[VoiceProfile],
        after: Sequence[VoiceProfile],
        bindings: Sequence[WorkspaceAgentBinding],
        run: SyncRun | None = None,
    ) -> SyncReport:
        """Push every changed profile to the agents bound to it."""
        run = run or SyncRun()
        changed = self._diff(before, after, run)
        if not changed:
            run.advance(SyncState.DONE)
            return SyncReport()
        return await self._resolve_and_dispatch(changed, before, list(bindings), run)

    async def synchronize_from_store(
        self,
        before: Sequence[VoiceProfile],
        after: Sequence[VoiceProfile],
        workspaces: BindingSource,
        run: SyncRun | None = None,
    ) -> SyncReport:
        """Like `synchronize`, listing bindings only once the diff is non-empty.

        Raises ResolutionError when the binding listing fails; no agent is
        called in that case.
        """
        run = run or SyncRun()
        changed = self._diff(before, after, run)
        if not changed:
            run.advance(SyncState.DONE)
            return SyncReport()

        try:
            bindings = await workspaces.list_all()
        except Exception as e:
            log.error("sync_resolution_failed", error=str(e))
            raise ResolutionError.from_error(e, "SyncOrchestrator.synchronize_from_store()") from e
        return await self._resolve_and_dispatch(changed, before, bindings, run)

    def _diff(
        self,
        before: Sequence[VoiceProfile],
        after: Sequence[VoiceProfile],
        run: SyncRun,
    ) -> list[VoiceProfile]:
        run.advance(SyncState.DIFFING)
        changed = detect_changed_profiles(before, after)
        log.info("sync_diffed", changed=len(changed), profiles=len(after or ()))
        return changed

    async def _resolve_and_dispatch(
        self,
        changed: list[VoiceProfile],
        before: Sequence[VoiceProfile],
        bindings: list[WorkspaceAgentBinding],
        run: SyncRun,
    ) -> SyncReport:
        run.advance(SyncState.RESOLVING)
        tasks = resolve_affected_agents(changed, bindings, self._match_mode, previous=before)
        log.info("sync_resolved", tasks=len(tasks), bindings=len(bindings), match_mode=self._match_mode.value)

        run.advance(SyncState.DISPATCHING)
        results = await self._dispatch(tasks)

        run.advance(SyncState.DONE)
        report = SyncReport(changed_profile_ids=[p.id for p in changed], results=results)
        log.info("sync_done", succeeded=len(report.succeeded), failed=len(report.failed))
        return report

    async def _dispatch(self, tasks: list[AgentSyncTask]) -> list[AgentSyncResult]:
        if not tasks:
            return []
        # Shielded: a caller that gives up does not abort calls already in flight.
        outcomes = await asyncio.shield(
            asyncio.gather(*(self._update_one(task) for task in tasks), return_exceptions=True)
        )
        results: list[AgentSyncResult] = []
        for task, outcome in zip(tasks, outcomes):
            if isinstance(outcome, BaseException):
                log.error("sync_task_crashed", agent_id=task.agent_id, error=repr(outcome))
                outcome = _result(task, error=str(outcome) or type(outcome).__name__)
            results.append(outcome)
        return results

    async def _update_one(self, task: AgentSyncTask) -> AgentSyncResult:
        payload = build_agent_update(task.profile, self._elevenlabs_api_key)
        try:
            await self._agent_api.update_agent(task.agent_id, payload)
        except ServiceError as e:
            return _result(task, error=e.message)
        return _result(task)


def _result(task: AgentSyncTask, error: str | None = None) -> AgentSyncResult:
    return AgentSyncResult(
        agent_id=task.agent_id,
        workspace_id=task.workspace_id,
        profile_id=task.profile.id,
        ok=error is None,
        error=error,
    )
