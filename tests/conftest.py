"""Pytest configuration and fixtures."""

from typing import Any, Dict, List

import pytest

from statflow.config import AnalysisSettings
from statflow.orchestration.units import ComputationUnit
from statflow.results import InMemoryResultSink
from statflow.variables import Variable


class FakeUnit(ComputationUnit):
    """Computation unit driven by the test: nothing runs until ``emit``/``fail``."""

    def __init__(self, handler):
        super().__init__()
        self.handler = handler
        self.posted: List[Dict[str, Any]] = []
        self.terminated = False

    def post_message(self, payload):
        self.posted.append(dict(payload))

    def terminate(self):
        self.on_message = None
        self.on_error = None
        self.terminated = True

    def emit(self, message: Dict[str, Any]) -> None:
        if self.on_message is not None:
            self.on_message(message)

    def fail(self, error: Exception) -> None:
        if self.on_error is not None:
            self.on_error(error)

    def run_handler(self) -> None:
        """Answer every posted payload with the real handler."""
        for payload in self.posted:
            self.emit(self.handler(payload))


class FakeUnitFactory:
    def __init__(self):
        self.units: List[FakeUnit] = []

    def __call__(self, handler) -> FakeUnit:
        unit = FakeUnit(handler)
        self.units.append(unit)
        return unit


@pytest.fixture
def fake_units() -> FakeUnitFactory:
    return FakeUnitFactory()


@pytest.fixture
def sink() -> InMemoryResultSink:
    return InMemoryResultSink()


@pytest.fixture
def no_timeout() -> AnalysisSettings:
    return AnalysisSettings(timeout_seconds=None)


@pytest.fixture
def string_variable() -> Variable:
    return Variable(name="var1", label="Var1", type="STRING", measure="nominal")


@pytest.fixture
def scale_variable() -> Variable:
    return Variable(name="score", label="Score", type="NUMERIC", measure="scale", decimals=1)


@pytest.fixture
def date_variable() -> Variable:
    return Variable(name="visit", label="Visit Date", type="DATE", measure="scale")


