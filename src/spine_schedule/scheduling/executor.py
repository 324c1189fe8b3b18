"""Job executor with a uniform completion contract.

Manifesto:
    Job authors write whatever is natural: a plain function, an ``async def``,
    a function that returns an exception instead of raising it, or one that
    returns an explicit ``Ok``/``Err``. The executor folds all of these into
    exactly one success or failure report per invocation and never lets a
    job's error escape into the timer.

Classification precedence (``classify_result``)::

    1. awaitable        → await it
                           raises       → failure (the exception)
                           returns Err  → failure (its error)
                           returns else → success
    2. error-like value → failure, reported immediately
       (an Err, or an exception instance returned rather than raised)
    3. anything else    → success (None and Ok included)

    A job that raises synchronously is a failure as well.

Errors:
    - ``MissingRunnerError``: ``runs`` absent. Raised before anything else
      happens; the only error that leaves ``run()``.
    - ``InvalidRunnerError``: ``runs`` did not resolve to a callable.
      Reported through ``OutcomeReporter.report_invalid``; nothing is invoked.

Tags:
    spine-schedule, scheduling, executor, async, result-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any

from spine_schedule.core.errors import InvalidRunnerError, MissingRunnerError
from spine_schedule.core.logging import get_logger
from spine_schedule.core.result import Err
from spine_schedule.scheduling.models import Schedule
from spine_schedule.scheduling.reporter import Outcome, OutcomeReporter
from spine_schedule.scheduling.resolver import JobRegistry, resolve_runner

logger = get_logger(__name__)


class Completion(str, Enum):
    """Shape of a job's return value."""

    AWAITABLE = "awaitable"
    FAILURE = "failure"
    SUCCESS = "success"


def classify_result(value: Any) -> tuple[Completion, Any]:
    """Classify a job's return value.

    Returns:
        ``(Completion, error)``; ``error`` is set only for ``FAILURE``.
    """
    if inspect.isawaitable(value):
        return Completion.AWAITABLE, None
    if isinstance(value, Err):
        return Completion.FAILURE, value.error
    if isinstance(value, BaseException):
        return Completion.FAILURE, value
    return Completion.SUCCESS, None


class JobExecutor:
    """Invoke a schedule's job and report its outcome.

    Example:
        >>> executor = JobExecutor(jobs, OutcomeReporter())
        >>> outcome = await executor.run(schedule)
        >>> outcome.succeeded
        True
    """

    def __init__(self, registry: JobRegistry, reporter: OutcomeReporter | None = None) -> None:
        self.registry = registry
        self.reporter = reporter if reporter is not None else OutcomeReporter()

    async def run(self, schedule: Schedule) -> Outcome:
        """Run *schedule*'s job once.

        Everything up to the first ``await`` of the job's awaitable happens
        without suspending, so a missing ``runs`` or a synchronous failure is
        raised/reported before the caller yields to the event loop.

        Raises:
            MissingRunnerError: If ``schedule.runs`` is absent or empty.
        """
        if schedule.runs is None or schedule.runs == "":
            raise MissingRunnerError(
                f"Schedule is missing a runs parameter - {schedule.describe()}"
            ).with_context(schedule_index=schedule.index, interval=schedule.interval)

        try:
            runner = resolve_runner(schedule.runs, self.registry)
        except InvalidRunnerError as e:
            e.with_context(schedule_index=schedule.index, interval=schedule.interval)
            return self.reporter.report_invalid(schedule, e)

        logger.debug("schedule_invoking", index=schedule.index, runs=schedule.runner_name)
        try:
            value = runner(schedule)
        except Exception as e:
            return self.reporter.report_failure(schedule, e)

        completion, error = classify_result(value)
        if completion is Completion.FAILURE:
            return self.reporter.report_failure(schedule, error)
        if completion is Completion.SUCCESS:
            return self.reporter.report_success(schedule)

        return await self._await_completion(schedule, value)

    async def _await_completion(self, schedule: Schedule, awaitable: Any) -> Outcome:
        try:
            resolved = await awaitable
        except Exception as e:
            return self.reporter.report_failure(schedule, e)

        if isinstance(resolved, Err):
            return self.reporter.report_failure(schedule, resolved.error)
        return self.reporter.report_success(schedule)
