from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(slots=True)
class PipelineContext:
    """State shared by the steps of a single pipeline run.

    ``input`` holds the caller's payload and is never written by steps;
    ``artifacts`` carries everything the steps produce for each other.
    """

    input: Mapping[str, Any]
    artifacts: Dict[str, Any] = field(default_factory=dict)
    run_id: Optional[str] = None

    def set(self, key: str, value: Any) -> None:
        self.artifacts[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.artifacts.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.artifacts

    def update(self, **items: Any) -> None:
        self.artifacts.update(items)

    def remove(self, key: str) -> None:
        self.artifacts.pop(key, None)

    def missing(self, keys: Iterable[str]) -> List[str]:
        return [k for k in keys if k not in self.artifacts]

    def require(self, keys: Iterable[str]) -> None:
        absent = self.missing(keys)
        if absent:
            raise KeyError(f"Missing required context keys: {', '.join(absent)}")

    def ensure_run_id(self) -> str:
        if not self.run_id:
            self.run_id = new_run_id()
        return self.run_id


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@runtime_checkable
class Step(Protocol):
    name: str
    status: StepStatus

    async def __call__(self, context: PipelineContext) -> None: ...


class BaseStep(ABC):
    """A unit of work in a pipeline.

    Order of checks on every call: ``can_skip`` first (a skipped step does
    not need its inputs), then ``required_keys``. Exceptions from ``run``
    mark the step FAILED and propagate unchanged; nothing is retried.
    A step instance keeps the status of its last run, so build one per run.
    """

    name: str = "step"
    required_keys: List[str] = []

    status: StepStatus = StepStatus.PENDING
    last_error: Optional[Exception] = None
    duration: float = 0.0

    async def __call__(self, context: PipelineContext) -> None:
        self.last_error = None
        if self.can_skip(context):
            self.status = StepStatus.SKIPPED
            logger.debug("Step %s skipped (run_id=%s)", self.name, context.run_id)
            return

        missing = context.missing(self.required_keys)
        if missing:
            raise KeyError(
                f"Missing required inputs for step '{self.name}': {', '.join(missing)}"
            )

        self.status = StepStatus.RUNNING
        started = perf_counter()
        try:
            await self.run(context)
        except Exception as e:
            self.status = StepStatus.FAILED
            self.last_error = e
            raise
        else:
            self.status = StepStatus.COMPLETED
        finally:
            self.duration = perf_counter() - started
            logger.debug(
                "Step %s %s in %.3fs (run_id=%s)",
                self.name,
                self.status.value,
                self.duration,
                context.run_id,
            )

    @abstractmethod
    async def run(self, context: PipelineContext) -> None: ...

    def can_skip(self, context: PipelineContext) -> bool:
        return False


@dataclass(slots=True)
class StepRecord:
    name: str
    status: StepStatus = StepStatus.PENDING
    duration: float = 0.0
    error: Optional[str] = None


@dataclass(slots=True)
class PipelineRun:
    """Outcome of a completed run. Failed runs raise instead of returning."""

    context: PipelineContext
    steps: List[StepRecord] = field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return all(
            s.status in (StepStatus.COMPLETED, StepStatus.SKIPPED) for s in self.steps
        )

    def status_of(self, name: str) -> Optional[StepStatus]:
        for record in self.steps:
            if record.name == name:
                return record.status
        return None


class Pipeline:
    """Runs steps strictly in order; the first failure aborts the run."""

    def __init__(self, steps: Iterable[Step]):
        self._steps = list(steps)

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    async def execute(self, context: PipelineContext) -> PipelineRun:
        context.ensure_run_id()
        run = PipelineRun(context=context)
        started = perf_counter()

        for step in self._steps:
            record = StepRecord(name=getattr(step, "name", type(step).__name__))
            run.steps.append(record)
            step_started = perf_counter()
            try:
                await step(context)
            except Exception as e:
                record.status = StepStatus.FAILED
                record.error = str(e)
                raise
            else:
                record.status = getattr(step, "status", StepStatus.COMPLETED)
            finally:
                record.duration = perf_counter() - step_started

        run.duration = perf_counter() - started
        return run


Middleware = Callable[[Step], Step]


class LoggedStep:
    """Step wrapper that logs BEGIN/END lines tagged with the run id."""

    def __init__(
        self,
        inner: Step,
        log: logging.Logger,
        level_before: int = logging.DEBUG,
        level_after: int = logging.INFO,
    ):
        self.inner = inner
        self.log = log
        self.level_before = level_before
        self.level_after = level_after

    def __getattr__(self, item):
        return getattr(self.inner, item)

    async def __call__(self, context: PipelineContext) -> None:
        name = getattr(self.inner, "name", type(self.inner).__name__)
        self.log.log(self.level_before, "[run_id=%s] Step %s BEGIN", context.run_id, name)
        started = perf_counter()
        try:
            await self.inner(context)
        finally:
            status = getattr(self.inner, "status", StepStatus.PENDING)
            self.log.log(
                self.level_after,
                "[run_id=%s] Step %s END status=%s duration=%.3fs",
                context.run_id,
                name,
                getattr(status, "value", status),
                perf_counter() - started,
            )


def make_logging_middleware(
    logger_obj: Optional[logging.Logger] = None,
    level_before: int = logging.DEBUG,
    level_after: int = logging.INFO,
) -> Middleware:
    """Return a middleware wrapping each step in a ``LoggedStep``."""
    log = logger_obj or logger

    def _middleware(step: Step) -> Step:
        return LoggedStep(step, log, level_before, level_after)

    return _middleware
