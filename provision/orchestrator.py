# provision/orchestrator.py
"""
Sequential runner for provisioning steps.

A step is a label plus a blocking callable that takes the configuration
snapshot and returns one `StepResult`. Steps run one at a time in the
default thread executor so the UI event loop stays responsive. Every
result is forwarded to the subscriber as soon as it is produced; a single
`Completed` or `Failed` event closes the run once the last step is done.

Failure does not stop the sequence: the remaining steps still run so the
operator gets the complete log.
"""
from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Sequence, Tuple, Union

from state import InstallConfig
from logger import log


class StepStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    FAILED = "failed"
    COMPLETE = "complete"


@dataclass(frozen=True)
class StepResult:
    text: str
    status: StepStatus = StepStatus.OK

    @classmethod
    def ok(cls, text: str) -> "StepResult":
        return cls(text, StepStatus.OK)

    @classmethod
    def warning(cls, text: str) -> "StepResult":
        return cls(text, StepStatus.WARNING)

    @classmethod
    def failed(cls, text: str) -> "StepResult":
        return cls(text, StepStatus.FAILED)

    @classmethod
    def complete(cls, text: str) -> "StepResult":
        return cls(text, StepStatus.COMPLETE)

    @property
    def lines(self) -> List[str]:
        return self.text.splitlines() or [""]


@dataclass(frozen=True)
class Step:
    label: str
    run: Callable[[InstallConfig], StepResult]


# -- Events (orchestrator -> controller) -----------------------------------

@dataclass(frozen=True)
class StepLabel:
    text: str


@dataclass(frozen=True)
class StepLog:
    text: str


@dataclass(frozen=True)
class BatchLog:
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class Completed:
    pass


@dataclass(frozen=True)
class Failed:
    reason: str


InstallEvent = Union[StepLabel, StepLog, BatchLog, Completed, Failed]


@dataclass
class RunReport:
    steps_run: int = 0
    reached_completion: bool = False
    failures: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class OrchestratorBusy(RuntimeError):
    pass


class Orchestrator:
    """Runs one step sequence at a time and reports to `emit`."""

    def __init__(self, emit: Callable[[InstallEvent], None]) -> None:
        self._emit = emit
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self, steps: Sequence[Step], config: InstallConfig) -> RunReport:
        if self._running:
            raise OrchestratorBusy("a step sequence is already running")
        self._running = True
        try:
            return await self._run(steps, config)
        finally:
            self._running = False

    async def _run(self, steps: Sequence[Step], config: InstallConfig) -> RunReport:
        loop = asyncio.get_running_loop()
        report = RunReport()
        log.info("Running %d provisioning steps", len(steps))

        for step in steps:
            self._emit(StepLabel(step.label))
            try:
                result = await loop.run_in_executor(None, step.run, config)
            except Exception as e:
                log.exception("Step '%s' raised", step.label)
                result = StepResult.failed(f"❌ {step.label} failed: {e}")
            report.steps_run += 1

            lines = result.lines
            if len(lines) == 1:
                self._emit(StepLog(lines[0]))
            else:
                self._emit(BatchLog(tuple(lines)))

            if result.status is StepStatus.FAILED:
                log.error("Step '%s' failed: %s", step.label, lines[0])
                report.failures.append(lines[0])
            elif result.status is StepStatus.COMPLETE:
                report.reached_completion = True
            else:
                log.info("Step '%s': %s", step.label, lines[0])

        if report.failures:
            self._emit(Failed(f"Installation failed: {report.failures[0]}"))
        else:
            self._emit(Completed())
        log.info(
            "Provisioning finished: %d steps, %d failures",
            report.steps_run, len(report.failures),
        )
        return report
