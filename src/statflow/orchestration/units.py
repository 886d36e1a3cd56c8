"""Computation units: off-loop workers that communicate only through messages."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Callable, Dict, Mapping, Optional

from statflow.config import AnalysisSettings

logger = logging.getLogger(__name__)

WorkerHandler = Callable[[Mapping[str, Any]], Dict[str, Any]]
MessageHandler = Callable[[Dict[str, Any]], None]
ErrorHandler = Callable[[Exception], None]


class ComputationUnitError(RuntimeError):
    """The computation unit itself failed (as opposed to a calculation error it reports)."""


class ComputationUnit(ABC):
    """
    Handle to one background computation.

    The owner assigns ``on_message`` and ``on_error`` before posting; both are
    invoked on the event loop thread. ``terminate`` must be safe to call at any
    time, more than once, and guarantees neither handler fires afterwards.
    """

    def __init__(self):
        self.on_message: Optional[MessageHandler] = None
        self.on_error: Optional[ErrorHandler] = None

    @abstractmethod
    def post_message(self, payload: Mapping[str, Any]) -> None:
        """Start computing ``payload``; returns without waiting."""

    @abstractmethod
    def terminate(self) -> None:
        """Stop the unit and drop its handlers."""


class ExecutorComputationUnit(ComputationUnit):
    """Runs a worker handler in a ``concurrent.futures`` executor.

    Must be used from within a running event loop.
    """

    def __init__(self, handler: WorkerHandler, executor: Optional[Executor] = None):
        super().__init__()
        self.handler = handler
        self._executor = executor
        self._owns_executor = executor is None
        self._task: Optional[asyncio.Task] = None

    def post_message(self, payload: Mapping[str, Any]) -> None:
        loop = asyncio.get_running_loop()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1)
        self._task = loop.create_task(self._run(loop, dict(payload)))

    async def _run(self, loop: asyncio.AbstractEventLoop, payload: Dict[str, Any]) -> None:
        try:
            response = await loop.run_in_executor(self._executor, self.handler, payload)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Computation unit failed: {e}")
            if self.on_error is not None:
                self.on_error(ComputationUnitError(str(e) or type(e).__name__))
            return
        if self.on_message is None:
            return
        try:
            self.on_message(response)
        except Exception as e:
            logger.exception(f"Message handler raised: {e}")
            if self.on_error is not None:
                self.on_error(ComputationUnitError(str(e) or type(e).__name__))

    def terminate(self) -> None:
        self.on_message = None
        self.on_error = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None


class ExecutorUnitFactory:
    """Creates computation units sharing one executor built from settings."""

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()
        self._executor: Optional[Executor] = None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            if self.settings.executor == "process":
                self._executor = ProcessPoolExecutor(max_workers=self.settings.max_workers)
            else:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.settings.max_workers, thread_name_prefix="statflow"
                )
            logger.debug(f"Started {self.settings.executor} pool with {self.settings.max_workers} workers")
        return self._executor

    def __call__(self, handler: WorkerHandler) -> ComputationUnit:
        return ExecutorComputationUnit(handler, executor=self._get_executor())

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None


def unit_factory_from_settings(settings: Optional[AnalysisSettings] = None) -> ExecutorUnitFactory:
    return ExecutorUnitFactory(settings or AnalysisSettings.from_env())
