"""Lifecycle shared by all analysis runners."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from statflow.config import AnalysisSettings, AnalysisValidationError
from statflow.orchestration.units import ComputationUnit, WorkerHandler, unit_factory_from_settings
from statflow.results.base import ResultSink
from statflow.results.models import AnalyticEntry, LogEntry, StatisticEntry

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Analysis timed out. Please try again with fewer variables."
PERSISTENCE_MESSAGE = "Error saving results. The analysis results could not be stored."

UnitFactory = Callable[[WorkerHandler], ComputationUnit]
RunOutput = Tuple[LogEntry, AnalyticEntry, List[StatisticEntry]]


class RunnerState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    AWAITING_RESULTS = "awaiting_results"
    AGGREGATING = "aggregating"
    PERSISTING = "persisting"
    FAILED = "failed"


@dataclass
class RunContext:
    """State owned by a single ``run_analysis`` call.

    A context that has finished, or that is no longer the runner's current
    one, ignores every message it still receives.
    """

    run_id: int
    request: Any
    total: int
    units: List[ComputationUnit] = field(default_factory=list)
    results: Dict[str, Any] = field(default_factory=dict)
    processed: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)
    finished: bool = False
    done: Optional[asyncio.Future] = None
    task: Optional[asyncio.Task] = None
    timeout_handle: Optional[asyncio.TimerHandle] = None

    def record_error(self, message: str) -> None:
        self.error_count += 1
        self.errors.append(message)


class AnalysisRunner(ABC):
    """
    Owns the computation units of one procedure and persists its tables.

    ``run_analysis`` validates the request, dispatches the computation units
    and returns; completion is driven by unit messages. Once every expected
    message arrived the tables are built and written to the sink, in order:
    one log, one analytic, then every statistic entry.

    Usage
    -----
    >>> runner = RunsRunner(sink=InMemoryResultSink(), on_close=close_dialog)
    >>> await runner.run_analysis(request)
    >>> await runner.wait()
    >>> runner.error_msg
    """

    #: Name used in transport-failure messages ("... in the <name> worker: ...")
    worker_label: str = ""

    def __init__(
        self,
        sink: ResultSink,
        on_close: Optional[Callable[[], None]] = None,
        unit_factory: Optional[UnitFactory] = None,
        settings: Optional[AnalysisSettings] = None,
    ):
        self.sink = sink
        self.on_close = on_close
        self.settings = settings or AnalysisSettings.from_env()
        self._owns_factory = unit_factory is None
        self.unit_factory = unit_factory or unit_factory_from_settings(self.settings)

        self.state = RunnerState.IDLE
        self.is_calculating = False
        self.error_msg: Optional[str] = None
        self.note: Optional[str] = None
        self._context: Optional[RunContext] = None
        self._run_counter = 0

    # -------------------------------------------------------------------------
    # Procedure hooks
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def handler(self) -> WorkerHandler:
        """Worker handler executed by each computation unit."""

    @abstractmethod
    def build_payloads(self, request: Any) -> List[Dict[str, Any]]:
        """One payload per computation unit."""

    @abstractmethod
    def accept_message(self, ctx: RunContext, message: Mapping[str, Any]) -> None:
        """Record one unit response into ``ctx`` (result or per-variable error)."""

    @abstractmethod
    def build_output(self, ctx: RunContext) -> Optional[RunOutput]:
        """Log, analytic and statistic entries for a completed run, or None when nothing succeeded."""

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _set_state(self, state: RunnerState) -> None:
        if state != self.state:
            logger.debug(f"{type(self).__name__}: {self.state.value} -> {state.value}")
        self.state = state

    async def run_analysis(self, request: Any) -> None:
        """Validate ``request`` and dispatch its computation units.

        Any run still in flight is cancelled first. Returns once the units
        are started; use :meth:`wait` to wait for the tables to be stored.
        """
        self.cancel_calculation()
        self.error_msg = None
        self.note = None
        self._set_state(RunnerState.DISPATCHING)

        try:
            request.validate()
            payloads = self.build_payloads(request)
        except AnalysisValidationError as e:
            logger.info(f"Analysis not started: {e}")
            self.error_msg = str(e)
            self._set_state(RunnerState.IDLE)
            return

        loop = asyncio.get_running_loop()
        self._run_counter += 1
        ctx = RunContext(run_id=self._run_counter, request=request, total=len(payloads))
        ctx.done = loop.create_future()
        self._context = ctx
        self.is_calculating = True

        for payload in payloads:
            unit = self.unit_factory(self.handler)
            unit.on_message = partial(self._handle_message, ctx)
            unit.on_error = partial(self._handle_error, ctx)
            ctx.units.append(unit)
            unit.post_message(payload)
        logger.info(f"{type(self).__name__} run {ctx.run_id}: dispatched {len(payloads)} computation unit(s)")

        if self.settings.timeout_seconds:
            ctx.timeout_handle = loop.call_later(
                self.settings.timeout_seconds * max(1, ctx.total), self._handle_timeout, ctx
            )
        self._set_state(RunnerState.AWAITING_RESULTS)

    def _is_live(self, ctx: RunContext) -> bool:
        return ctx is self._context and not ctx.finished

    def _handle_message(self, ctx: RunContext, message: Mapping[str, Any]) -> None:
        if not self._is_live(ctx):
            logger.debug(f"Ignoring message for stale run {ctx.run_id}")
            return
        try:
            self.accept_message(ctx, message)
        except Exception as e:
            logger.exception(f"{type(self).__name__} run {ctx.run_id}: could not read unit response")
            ctx.record_error(f"Calculation failed for {_message_label(message)}: {e}")
        ctx.processed += 1
        if ctx.processed >= ctx.total:
            self._complete(ctx)

    def _handle_error(self, ctx: RunContext, error: Exception) -> None:
        if not self._is_live(ctx):
            return
        logger.error(f"{type(self).__name__} run {ctx.run_id}: computation unit failed: {error}")
        self._fail(ctx, f"A critical worker error occurred in the {self.worker_label} worker: {error}")

    def _handle_timeout(self, ctx: RunContext) -> None:
        if not self._is_live(ctx):
            return
        logger.warning(f"{type(self).__name__} run {ctx.run_id}: timed out")
        self._fail(ctx, TIMEOUT_MESSAGE)

    def _fail(self, ctx: RunContext, message: str) -> None:
        self._finish_waiting(ctx)
        self.error_msg = message
        self._set_state(RunnerState.FAILED)
        self._settle(ctx)

    def _finish_waiting(self, ctx: RunContext) -> None:
        ctx.finished = True
        if ctx.timeout_handle is not None:
            ctx.timeout_handle.cancel()
            ctx.timeout_handle = None
        self._release_units(ctx)

    @staticmethod
    def _release_units(ctx: RunContext) -> None:
        for unit in ctx.units:
            unit.on_message = None
            unit.on_error = None
            unit.terminate()
        ctx.units.clear()

    def _settle(self, ctx: RunContext) -> None:
        # a cancelled run may settle after its replacement started
        if ctx is self._context:
            self.is_calculating = False
            self._set_state(RunnerState.IDLE)
        if ctx.done is not None and not ctx.done.done():
            ctx.done.set_result(None)

    def _complete(self, ctx: RunContext) -> None:
        self._finish_waiting(ctx)
        self._set_state(RunnerState.AGGREGATING)
        ctx.task = asyncio.get_running_loop().create_task(self._aggregate_and_persist(ctx))

    async def _aggregate_and_persist(self, ctx: RunContext) -> None:
        try:
            if ctx.errors:
                self.error_msg = "\n".join(ctx.errors)

            try:
                output = self.build_output(ctx)
            except Exception as e:
                logger.exception(f"Failed to build result tables: {e}")
                self.error_msg = f"Failed to format results: {e}"
                self._set_state(RunnerState.FAILED)
                return

            if output is None:
                logger.info(f"{type(self).__name__} run {ctx.run_id}: nothing to store")
                if ctx.error_count:
                    self._set_state(RunnerState.FAILED)
                return

            log, analytic, statistics = output
            self.note = analytic.note
            self._set_state(RunnerState.PERSISTING)
            try:
                log_id = await self.sink.add_log(log)
                analytic_id = await self.sink.add_analytic(log_id, analytic)
                for entry in statistics:
                    await self.sink.add_statistic(analytic_id, entry)
            except Exception as e:
                logger.exception(f"Error saving results: {e}")
                self.error_msg = PERSISTENCE_MESSAGE
                self._set_state(RunnerState.FAILED)
                return

            logger.info(
                f"{type(self).__name__} run {ctx.run_id}: stored {len(statistics)} statistic(s), "
                f"{ctx.error_count} error(s)"
            )
            if ctx.error_count:
                self._set_state(RunnerState.FAILED)
            elif self.on_close is not None:
                self.on_close()
        finally:
            self._settle(ctx)

    def cancel_calculation(self) -> None:
        """Stop the current run, if any. Safe to call repeatedly or while idle."""
        ctx = self._context
        if ctx is not None:
            if not ctx.finished:
                logger.info(f"{type(self).__name__} run {ctx.run_id}: cancelled")
                self._finish_waiting(ctx)
            if ctx.task is not None and not ctx.task.done():
                ctx.task.cancel()
            self._settle(ctx)
        self._context = None
        self.is_calculating = False

    cancel_analysis = cancel_calculation

    async def wait(self) -> None:
        """Wait until the current run stored its results, failed or was cancelled."""
        ctx = self._context
        if ctx is None or ctx.done is None:
            return
        await ctx.done
        if ctx.task is not None and not ctx.task.done():
            await asyncio.wait([ctx.task])

    def close(self) -> None:
        """Cancel any run and release the computation units' executor."""
        self.cancel_calculation()
        if self._owns_factory:
            shutdown = getattr(self.unit_factory, "shutdown", None)
            if shutdown is not None:
                shutdown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _message_label(message: Any) -> str:
    name = message.get("variableName") if isinstance(message, Mapping) else None
    return str(name) if name else "unknown variable"
