"""Job registry and runner resolution: injectable name → callable lookup.

Manifesto:
    A schedule may name its job instead of holding a reference to it, so
    schedules can live in TOML. Names resolve against an explicit table
    built at startup, never against module globals: what a schedule can
    run is exactly what was registered.

ARCHITECTURE
────────────
::

    JobRegistry
      ├── .register(name, func)   ─ store callable (or namespace object)
      ├── .job(name)              ─ decorator form
      ├── .get(name)              ─ exact lookup
      ├── .has(name)              ─ existence check
      └── .names()                ─ all registered names

    resolve_runner(runs, registry)
      callable  → returned as-is
      "a.b.c"   → exact name, else longest registered prefix + getattr
                  on the remaining segments
      otherwise → InvalidRunnerError

Tags:
    spine-schedule, scheduling, registry, job-lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from spine_schedule.core.errors import InvalidRunnerError


class JobRegistry:
    """Injectable job registry.

    Values are usually callables, but a namespace (module, class instance)
    can be registered too and addressed with dotted names.

    Example:
        >>> jobs = JobRegistry()
        >>>
        >>> @jobs.job("reports.refresh")
        ... async def refresh(schedule):
        ...     ...
        >>>
        >>> jobs.register("housekeeping", housekeeping_module)
        >>> resolve_runner("housekeeping.rotate_logs", jobs)
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Any] = {}

    def register(self, name: str, func: Any) -> None:
        """Register *func* under *name*.

        Raises:
            ValueError: If *name* is empty or already registered.
        """
        if not name:
            raise ValueError("Job name must not be empty")
        if name in self._jobs:
            raise ValueError(f"Job '{name}' is already registered")
        self._jobs[name] = func

    def job(self, name: str | None = None) -> Callable[[Callable], Callable]:
        """Decorator to register a function, under its ``__name__`` by default."""

        def decorator(func: Callable) -> Callable:
            self.register(name or func.__name__, func)
            return func

        return decorator

    def get(self, name: str) -> Any:
        """Get a registered value.

        Raises:
            KeyError: If *name* is not registered.
        """
        if name not in self._jobs:
            available = ", ".join(sorted(self._jobs)) or "none"
            raise KeyError(f"Job '{name}' not found. Available: {available}")
        return self._jobs[name]

    def has(self, name: str) -> bool:
        return name in self._jobs

    def names(self) -> list[str]:
        return sorted(self._jobs)

    def unregister(self, name: str) -> bool:
        """Remove *name*; returns False if it was not registered."""
        if name in self._jobs:
            del self._jobs[name]
            return True
        return False

    def clear(self) -> None:
        """Clear all jobs (for testing)."""
        self._jobs.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)


def _lookup_dotted(name: str, registry: JobRegistry) -> Any:
    if registry.has(name):
        return registry.get(name)

    parts = name.split(".")
    for split in range(len(parts) - 1, 0, -1):
        prefix = ".".join(parts[:split])
        if not registry.has(prefix):
            continue
        target = registry.get(prefix)
        for attr in parts[split:]:
            try:
                target = getattr(target, attr)
            except AttributeError as e:
                raise InvalidRunnerError(
                    f"'{name}' does not resolve: {prefix!r} has no attribute path "
                    f"{'.'.join(parts[split:])!r}",
                    cause=e,
                ).with_context(runs=name) from e
        return target

    raise InvalidRunnerError(
        f"No job registered for '{name}'. Available: {', '.join(registry.names()) or 'none'}"
    ).with_context(runs=name)


def resolve_runner(runs: Any, registry: JobRegistry) -> Callable[..., Any]:
    """Resolve a schedule's ``runs`` to something invocable.

    Raises:
        InvalidRunnerError: If *runs* names nothing, or resolves to a
            non-callable value.
    """
    if callable(runs):
        return runs

    if isinstance(runs, str):
        runner = _lookup_dotted(runs, registry)
        if callable(runner):
            return runner
        raise InvalidRunnerError(
            f"'{runs}' resolved to a non-callable {type(runner).__name__}"
        ).with_context(runs=runs)

    raise InvalidRunnerError(
        "Schedule invalid, expected a function or a registered dot-notated job name, "
        f"got {type(runs).__name__}"
    ).with_context(runs=repr(runs))
