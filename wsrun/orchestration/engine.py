"""Execution engine: run a script for every package of an execution plan.

Two modes are supported:

- **sequential**: the plan's tiers are flattened and runnable packages run
  one at a time; the first failure aborts the run immediately.
- **parallel-by-tier**: tiers run strictly in order and each tier is a
  barrier. Inside a tier, ``min(jobs, runnable)`` workers repeatedly claim
  the next unclaimed package. A failure never cancels siblings: the tier
  finishes, then the run aborts with the first recorded failure.

Running processes are never killed; aborting only stops scheduling.
"""

import asyncio
import time
from collections.abc import Mapping, Sequence

from wsrun.domain.graph import ExecutionPlan
from wsrun.domain.package import PackageRecord
from wsrun.drivers.subprocess_runner import build_command
from wsrun.exceptions import TaskFailedError
from wsrun.logging import get_logger
from wsrun.orchestration.events import (
    Event,
    TaskCompleted,
    TaskFailed,
    TaskSkipped,
    TaskStarted,
    TierCompleted,
    TierStarted,
)
from wsrun.orchestration.models import ExecutionMode, RunReport, TaskOutcome, TaskState
from wsrun.orchestration.observers import LoggingObserver, Observer
from wsrun.ports.process import ProcessRunner

logger = get_logger(__name__)

DEFAULT_RUNNER = "bun run"


def _calculate_duration_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


class ExecutionEngine:
    """Runs a package script across an :class:`ExecutionPlan`.

    Parameters
    ----------
    runner : ProcessRunner
        Process execution backend
    script : str
        Script name to run in each package
    jobs : int
        Worker pool bound per tier (parallel-by-tier mode only), at least 1
    runner_command : str
        Command prefix the script name is appended to, e.g. ``"bun run"``
    observer : Observer | None
        Receives every event; defaults to :class:`LoggingObserver`

    Examples
    --------
    Example usage::

        engine = ExecutionEngine(SubprocessRunner(), "build", jobs=4)
        report = await engine.run(plan, catalog, ExecutionMode.PARALLEL)
    """

    def __init__(
        self,
        runner: ProcessRunner,
        script: str,
        jobs: int = 1,
        runner_command: str = DEFAULT_RUNNER,
        observer: Observer | None = None,
    ) -> None:
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.runner = runner
        self.script = script
        self.jobs = jobs
        self.command = tuple(build_command(runner_command, script))
        self.observer: Observer = observer if observer is not None else LoggingObserver()

    def _emit(self, event: Event) -> None:
        self.observer(event)

    # ------------------------------------------------------------------
    # Plan projection
    # ------------------------------------------------------------------

    def runnable_tiers(
        self, plan: ExecutionPlan, packages: Mapping[str, PackageRecord]
    ) -> list[list[PackageRecord]]:
        """Per tier, the packages that define the script (sorted by name)."""
        return [
            [packages[name] for name in sorted(tier) if packages[name].has_script(self.script)]
            for tier in plan
        ]

    def sequential_order(
        self, plan: ExecutionPlan, packages: Mapping[str, PackageRecord]
    ) -> list[PackageRecord]:
        """Runnable packages in flattened tier order."""
        return [pkg for tier in self.runnable_tiers(plan, packages) for pkg in tier]

    def _start_report(
        self, plan: ExecutionPlan, packages: Mapping[str, PackageRecord], mode: ExecutionMode
    ) -> RunReport:
        report = RunReport(mode=mode)
        for name in plan.sequential_order():
            if packages[name].has_script(self.script):
                report.states[name] = TaskState.PENDING
            else:
                report.states[name] = TaskState.SKIPPED
                report.skipped.append(name)
                self._emit(TaskSkipped(name=name, script=self.script))
        return report

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(
        self,
        plan: ExecutionPlan,
        packages: Mapping[str, PackageRecord],
        mode: ExecutionMode = ExecutionMode.PARALLEL,
    ) -> RunReport:
        """Run the script for every runnable package of ``plan``.

        Returns
        -------
        RunReport
            Outcomes of every task when all succeeded

        Raises
        ------
        TaskFailedError
            On the first failure (sequential) or after a tier with failures
            has finished (parallel-by-tier)
        """
        report = self._start_report(plan, packages, mode)
        if mode is ExecutionMode.SEQUENTIAL:
            await self._run_sequential(self.sequential_order(plan, packages), report)
        else:
            await self._run_tiers(self.runnable_tiers(plan, packages), report)
        return report

    async def _run_sequential(self, order: Sequence[PackageRecord], report: RunReport) -> None:
        for package in order:
            outcome = await self._run_task(package, report)
            if not outcome.succeeded:
                raise TaskFailedError(outcome, report=report)

    async def _run_tiers(self, tiers: Sequence[Sequence[PackageRecord]], report: RunReport) -> None:
        for index, tier in enumerate(tiers, start=1):
            if not tier:
                continue
            failures = await self._run_tier(index, tier, report)
            if failures:
                raise TaskFailedError(failures[0], failures=failures, report=report)

    async def _run_tier(
        self, tier_index: int, tier: Sequence[PackageRecord], report: RunReport
    ) -> list[TaskOutcome]:
        """Run one tier on a pool of ``min(jobs, len(tier))`` workers.

        Returns the failures in the order they were recorded. An exception
        raised by the process runner is re-raised once every worker has
        stopped.
        """
        workers = max(1, min(self.jobs, len(tier)))
        lock = asyncio.Lock()
        next_index = 0
        failures: list[TaskOutcome] = []

        async def worker() -> None:
            nonlocal next_index
            while True:
                async with lock:
                    if next_index >= len(tier):
                        return
                    package = tier[next_index]
                    next_index += 1

                outcome = await self._run_task(package, report)
                if not outcome.succeeded:
                    async with lock:
                        failures.append(outcome)

        start_time = time.perf_counter()
        self._emit(
            TierStarted(
                tier_index=tier_index,
                packages=tuple(p.name for p in tier),
                workers=workers,
            )
        )
        # Let every worker drain the tier before a runner error propagates
        results = await asyncio.gather(
            *(worker() for _ in range(workers)), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        self._emit(
            TierCompleted(
                tier_index=tier_index,
                duration_ms=_calculate_duration_ms(start_time),
                failed=tuple(f.name for f in failures),
            )
        )
        return failures

    async def _run_task(self, package: PackageRecord, report: RunReport) -> TaskOutcome:
        report.states[package.name] = TaskState.RUNNING
        self._emit(
            TaskStarted(name=package.name, directory=package.directory, command=self.command)
        )

        start_time = time.perf_counter()
        exit_code = await self.runner.run(self.command, cwd=package.directory)
        outcome = TaskOutcome(
            name=package.name,
            directory=package.directory,
            exit_code=exit_code,
            duration_ms=_calculate_duration_ms(start_time),
        )
        report.outcomes.append(outcome)

        if outcome.succeeded:
            report.states[package.name] = TaskState.SUCCEEDED
            self._emit(
                TaskCompleted(
                    name=package.name,
                    directory=package.directory,
                    exit_code=exit_code,
                    duration_ms=outcome.duration_ms,
                )
            )
        else:
            report.states[package.name] = TaskState.FAILED
            self._emit(
                TaskFailed(
                    name=package.name,
                    directory=package.directory,
                    exit_code=exit_code,
                    duration_ms=outcome.duration_ms,
                )
            )
        return outcome
