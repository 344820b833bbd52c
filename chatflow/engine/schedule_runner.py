"""Schedule runner - fires TRIGGER_SCHEDULE workflows on cron or interval."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import CroniterBadCronError, croniter

from .types import InboundEvent, NodeType, Workflow, WorkflowNode, utcnow

if TYPE_CHECKING:
    from .collaborators import WorkflowStore

logger = logging.getLogger(__name__)

Dispatch = Callable[[InboundEvent], Awaitable[Any]]


@dataclass
class ScheduleEntry:
    """Tracking state of one schedule trigger."""

    signature: tuple[Any, ...]
    next_fire: datetime


class ScheduleRunner:
    """
    Polls active workflows and dispatches `schedule` events when due.

    A schedule first seen (or whose config changed) is armed from that moment,
    so a restart never replays missed runs.
    """

    def __init__(
        self,
        workflow_store: WorkflowStore,
        dispatch: Dispatch,
        tick_seconds: float = 30.0,
        default_session_id: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._workflows = workflow_store
        self._dispatch = dispatch
        self._tick_seconds = tick_seconds
        self._default_session_id = default_session_id
        self._clock = clock
        self._entries: dict[str, ScheduleEntry] = {}
        self._task: asyncio.Task[None] | None = None

    async def tick(self, now: datetime | None = None) -> int:
        """Dispatch every due schedule; returns how many fired."""
        now = now or self._clock()
        seen: set[str] = set()
        fired = 0

        for workflow in await self._workflows.list_active():
            for node in workflow.nodes:
                if node.type != NodeType.TRIGGER_SCHEDULE.value:
                    continue
                key = f"{workflow.id}:{node.id}"
                seen.add(key)
                if await self._check(key, workflow, node, now):
                    fired += 1

        for key in set(self._entries) - seen:
            del self._entries[key]
        return fired

    async def _check(self, key: str, workflow: Workflow, node: WorkflowNode, now: datetime) -> bool:
        config = node.config
        signature = (
            config.get("scheduleType"),
            config.get("cronExpression"),
            config.get("intervalMinutes"),
            config.get("timezone"),
        )

        entry = self._entries.get(key)
        if entry is None or entry.signature != signature:
            next_fire = self.next_fire_time(config, now)
            if next_fire is None:
                return False
            self._entries[key] = ScheduleEntry(signature=signature, next_fire=next_fire)
            logger.info("Scheduled workflow %s: next run at %s", workflow.id, next_fire.isoformat())
            return False

        if now < entry.next_fire:
            return False

        entry.next_fire = self.next_fire_time(config, now) or now + timedelta(minutes=1)

        session_id = config.get("sessionId") or self._default_session_id
        if not session_id:
            logger.warning("Skipping scheduled run of workflow %s: no sessionId", workflow.id)
            return False

        event = InboundEvent(
            kind="schedule",
            tenant_id=workflow.tenant_id,
            session_id=session_id,
            contact_id=f"scheduled-{workflow.id}-{int(now.timestamp() * 1000)}",
            timestamp=now,
            workflow_id=workflow.id,
        )
        try:
            await self._dispatch(event)
        except Exception:
            logger.exception("Error running scheduled workflow %s", workflow.id)
            return False
        return True

    def next_fire_time(self, config: dict[str, Any], after: datetime) -> datetime | None:
        """Next run strictly after `after`, or None for an unusable config."""
        if config.get("scheduleType") == "cron":
            expression = config.get("cronExpression")
            if not expression:
                return None
            base = after
            tz_name = config.get("timezone")
            if tz_name:
                try:
                    base = after.astimezone(ZoneInfo(tz_name))
                except ZoneInfoNotFoundError:
                    logger.warning("Unknown schedule timezone %r, using UTC", tz_name)
            try:
                return croniter(expression, base).get_next(datetime)
            except (CroniterBadCronError, ValueError) as e:
                logger.warning("Invalid cron expression %r: %s", expression, e)
                return None

        minutes = config.get("intervalMinutes")
        try:
            minutes = float(minutes) if minutes is not None else None
        except (TypeError, ValueError):
            minutes = None
        if not minutes or minutes <= 0:
            return None
        return after + timedelta(minutes=minutes)

    async def _run(self) -> None:
        logger.info("Schedule runner started (tick=%ss)", self._tick_seconds)
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Schedule runner tick failed")
            await asyncio.sleep(self._tick_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="schedule-runner")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Schedule runner stopped")
