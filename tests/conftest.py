"""Pytest configuration and fixtures for chorus tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from chorus.config import LaunchConfig, ReporterConfig
from chorus.correlation import HierarchyCorrelator
from chorus.events import (
    CaseFinished,
    CaseStarted,
    HookStep,
    PickleStep,
    Result,
    Status,
    StepFinished,
    StepStarted,
)
from chorus.transport import RecordingClient


CALCULATOR_URI = "features/calculator.feature"
CALCULATOR_FEATURE = """\
Feature: Calculator

  Scenario: Add two numbers
    Given I have entered 50 into the calculator
    When I press add
"""

LOGIN_URI = "file:///work/src/test/features/login.feature"
LOGIN_FEATURE = """\
@smoke
Feature: Login

  Background:
    Given the login page is open

  Scenario: Valid login
    When I log in as "admin"
    Then I see the dashboard

  @negative
  Scenario Outline: Invalid login
    When I log in as "<user>"
    Then I see "<message>"

    Examples: unknown users
      | user  | message      |
      | bob   | Unknown user |
      | carol | Unknown user |

    Examples: locked users
      | user | message |
      | dave | Locked  |
"""

# Minimal PNG: signature followed by an IHDR chunk
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    b"\x1f\x15\xc4\x89"
)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def make_correlator(client: RecordingClient, clock: FakeClock) -> Callable[..., HierarchyCorrelator]:
    """Factory building a correlator over the recording client and fake clock."""

    def factory(**overrides) -> HierarchyCorrelator:
        config = ReporterConfig(version=1, launch=LaunchConfig(name="nightly"), **overrides)
        return HierarchyCorrelator(client, config, clock=clock)

    return factory


@pytest.fixture
def correlator(make_correlator) -> HierarchyCorrelator:
    return make_correlator()


# ─────────────────────────────────────────────────────────────────────────────
# Event helpers
# ─────────────────────────────────────────────────────────────────────────────

def start_case(correlator: HierarchyCorrelator, uri: str, line: int, name: str, tags=None) -> None:
    correlator.handle(CaseStarted(uri=uri, line=line, name=name, tags=tags or []))


def finish_case(correlator: HierarchyCorrelator, uri: str, line: int, status: Status = Status.PASSED) -> None:
    correlator.handle(CaseFinished(uri=uri, line=line, result=Result(status)))


def run_step(
    correlator: HierarchyCorrelator,
    uri: str,
    case_line: int,
    step: PickleStep,
    status: Status = Status.PASSED,
    error: str | None = None,
) -> None:
    correlator.handle(StepStarted(uri=uri, line=case_line, step=step))
    correlator.handle(
        StepFinished(uri=uri, line=case_line, step=step, result=Result(status, error_message=error))
    )


def run_hook(
    correlator: HierarchyCorrelator,
    uri: str,
    case_line: int,
    hook: HookStep,
    status: Status = Status.PASSED,
    error: str | None = None,
) -> None:
    correlator.handle(StepStarted(uri=uri, line=case_line, step=hook))
    correlator.handle(
        StepFinished(uri=uri, line=case_line, step=hook, result=Result(status, error_message=error))
    )
