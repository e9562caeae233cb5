"""
In-process durable step runner.

A handler registered with ``JobClient.create_function`` is invoked once per
matching event.  Work inside the handler is split into named steps via
``ctx.step.run(...)``; each step's JSON output is persisted as soon as it
completes, so a retried attempt replays finished steps from the database
instead of executing them again.

Runs are persisted as ``JobRun`` rows before they are scheduled, which lets
``resume_pending`` pick up anything interrupted by a restart.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select

from vibe.core.config import settings
from vibe.db import database
from vibe.models.base import utc_now
from vibe.models.job import JobRun, JobStatus, JobStep

logger = logging.getLogger(__name__)

Handler = Callable[["JobContext"], Awaitable[Any]]


class NonRetriableError(Exception):
    """Raised by a handler to fail its run without further attempts."""


@dataclass(frozen=True)
class Event:
    name: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class JobFunction:
    fn_id: str
    event: str
    handler: Handler
    retries: int | None = None
    concurrency_key: Callable[[dict[str, Any]], Any] | None = None

    def key_for(self, data: dict[str, Any]) -> str | None:
        if self.concurrency_key is None:
            return None
        key = self.concurrency_key(data)
        return str(key) if key is not None else None


class Step:
    """Memoizes named units of work for one attempt of a run."""

    def __init__(self, run_id: uuid.UUID, cache: dict[str, Any] | None = None):
        self.run_id = run_id
        self._cache = dict(cache or {})
        self._seen: dict[str, int] = {}

    def _resolve_id(self, step_id: str) -> str:
        count = self._seen.get(step_id, 0)
        self._seen[step_id] = count + 1
        return step_id if count == 0 else f"{step_id}:{count}"

    async def run(self, step_id: str, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Return the stored output of *step_id*, or execute *fn* and store it."""
        resolved = self._resolve_id(step_id)
        if resolved in self._cache:
            logger.debug("Run %s: replaying step %s", self.run_id, resolved)
            return self._cache[resolved]

        output = await fn(*args, **kwargs)
        # Steps only hand JSON back to the handler, same as on replay
        output = json.loads(json.dumps(output))

        async with database.AsyncSessionLocal() as db:
            db.add(JobStep(run_id=self.run_id, step_id=resolved, output=output))
            await db.commit()

        self._cache[resolved] = output
        logger.debug("Run %s: completed step %s", self.run_id, resolved)
        return output


@dataclass
class JobContext:
    run_id: uuid.UUID
    event: Event
    step: Step
    attempt: int
    logger: logging.Logger


class JobClient:
    def __init__(self, app_id: str):
        self.app_id = app_id
        self._functions: dict[str, JobFunction] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    # ── Registration ──────────────────────────────────────────

    def create_function(
        self,
        *,
        fn_id: str,
        event: str,
        retries: int | None = None,
        concurrency_key: Callable[[dict[str, Any]], Any] | None = None,
    ) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self._functions[fn_id] = JobFunction(
                fn_id=fn_id,
                event=event,
                handler=handler,
                retries=retries,
                concurrency_key=concurrency_key,
            )
            return handler

        return decorator

    def functions_for(self, event_name: str) -> list[JobFunction]:
        return [fn for fn in self._functions.values() if fn.event == event_name]

    # ── Dispatch ──────────────────────────────────────────────

    async def enqueue(self, name: str, data: dict[str, Any]) -> list[JobRun]:
        """Persist one QUEUED run per function subscribed to *name*."""
        functions = self.functions_for(name)
        if not functions:
            logger.warning("No function subscribed to event %s", name)
            return []

        runs = []
        async with database.AsyncSessionLocal() as db:
            for fn in functions:
                retries = settings.JOB_RETRIES if fn.retries is None else fn.retries
                run = JobRun(
                    function_id=fn.fn_id,
                    event_name=name,
                    payload=data,
                    max_attempts=retries + 1,
                    concurrency_key=fn.key_for(data),
                )
                db.add(run)
                runs.append(run)
            await db.commit()
        return runs

    async def send(self, name: str, data: dict[str, Any]) -> list[uuid.UUID]:
        """Enqueue *name* and start its runs in the background; does not wait for them."""
        runs = await self.enqueue(name, data)
        for run in runs:
            self._schedule(run.id)
        logger.info("Event %s sent (%d run(s))", name, len(runs))
        return [run.id for run in runs]

    def _schedule(self, run_id: uuid.UUID) -> asyncio.Task:
        task = asyncio.create_task(self.run(run_id), name=f"{self.app_id}:{run_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ── Execution ─────────────────────────────────────────────

    async def run(self, run_id: uuid.UUID) -> JobRun | None:
        async with database.AsyncSessionLocal() as db:
            job = await db.get(JobRun, run_id)
        if job is None:
            logger.error("Run %s not found", run_id)
            return None
        if job.status in (JobStatus.COMPLETED, JobStatus.FAILED):
            return job

        fn = self._functions.get(job.function_id)
        if fn is None:
            return await self._update(
                run_id, status=JobStatus.FAILED, error=f"Unknown function {job.function_id}"
            )

        if job.concurrency_key is None:
            return await self._execute(fn, job)
        key = f"{fn.fn_id}:{job.concurrency_key}"
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                return await self._execute(fn, job)
        finally:
            # Forget the lock once no run holds or awaits it
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _execute(self, fn: JobFunction, job: JobRun) -> JobRun | None:
        event = Event(name=job.event_name, data=dict(job.payload or {}))
        attempt = job.attempt

        while True:
            await self._update(job.id, status=JobStatus.RUNNING, attempt=attempt)
            ctx = JobContext(
                run_id=job.id,
                event=event,
                step=Step(job.id, await self._load_steps(job.id)),
                attempt=attempt,
                logger=logging.getLogger(f"vibe.jobs.{fn.fn_id}"),
            )
            try:
                output = await fn.handler(ctx)
            except NonRetriableError as e:
                logger.error("Run %s (%s) failed permanently: %s", job.id, fn.fn_id, e)
                return await self._update(job.id, status=JobStatus.FAILED, error=str(e))
            except Exception as e:
                attempt += 1
                if attempt >= job.max_attempts:
                    logger.exception("Run %s (%s) failed after %d attempt(s)", job.id, fn.fn_id, attempt)
                    return await self._update(
                        job.id, status=JobStatus.FAILED, attempt=attempt, error=str(e)
                    )
                logger.warning(
                    "Run %s (%s) attempt %d failed, retrying: %s", job.id, fn.fn_id, attempt, e
                )
                await asyncio.sleep(settings.JOB_RETRY_BACKOFF_SECONDS * attempt)
                continue

            output = json.loads(json.dumps(output))
            logger.info("Run %s (%s) completed", job.id, fn.fn_id)
            return await self._update(job.id, status=JobStatus.COMPLETED, output=output, error=None)

    async def _load_steps(self, run_id: uuid.UUID) -> dict[str, Any]:
        async with database.AsyncSessionLocal() as db:
            result = await db.execute(select(JobStep).where(JobStep.run_id == run_id))
            return {step.step_id: step.output for step in result.scalars().all()}

    async def _update(self, run_id: uuid.UUID, **changes: Any) -> JobRun | None:
        async with database.AsyncSessionLocal() as db:
            job = await db.get(JobRun, run_id)
            if job is None:
                return None
            for key, value in changes.items():
                setattr(job, key, value)
            job.updated_at = utc_now()
            db.add(job)
            await db.commit()
            await db.refresh(job)
            return job

    # ── Lifecycle ─────────────────────────────────────────────

    async def resume_pending(self) -> list[uuid.UUID]:
        """Reschedule runs left QUEUED or RUNNING by a previous process."""
        async with database.AsyncSessionLocal() as db:
            result = await db.execute(
                select(JobRun.id)
                .where(JobRun.status.in_([JobStatus.QUEUED, JobStatus.RUNNING]))
                .order_by(JobRun.created_at)
            )
            run_ids = list(result.scalars().all())

        for run_id in run_ids:
            self._schedule(run_id)
        if run_ids:
            logger.info("Resumed %d pending run(s)", len(run_ids))
        return run_ids

    async def shutdown(self) -> None:
        """Cancel in-flight runs; they stay RUNNING and are resumed on next start."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
