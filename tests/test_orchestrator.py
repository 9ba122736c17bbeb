# tests/test_orchestrator.py
import asyncio

import pytest

from state import InstallConfig
from provision.orchestrator import (
    BatchLog, Completed, Failed, Orchestrator, OrchestratorBusy,
    Step, StepLabel, StepLog, StepResult,
)


def _ok(text):
    return Step(text, lambda config: StepResult.ok(text))


def _run(steps, config=None):
    events = []
    report = asyncio.run(Orchestrator(events.append).run(steps, config or InstallConfig()))
    return events, report


def _logs(events):
    lines = []
    for e in events:
        if isinstance(e, StepLog):
            lines.append(e.text)
        elif isinstance(e, BatchLog):
            lines.extend(e.lines)
    return lines


def test_success_ends_with_completed():
    steps = [_ok("✓ one"), _ok("✓ two"), Step("done", lambda c: StepResult.complete("🎉 done"))]
    events, report = _run(steps)
    assert events[-1] == Completed()
    assert _logs(events) == ["✓ one", "✓ two", "🎉 done"]
    assert report.reached_completion
    assert report.succeeded


def test_each_step_announced_before_its_result():
    events, _ = _run([_ok("✓ one")])
    assert events[:2] == [StepLabel("✓ one"), StepLog("✓ one")]


def test_failure_does_not_stop_remaining_steps():
    ran = []

    def step(i, result):
        def run(config):
            ran.append(i)
            return result
        return Step(f"step {i}", run)

    steps = [
        step(1, StepResult.ok("✓ 1")),
        step(2, StepResult.ok("✓ 2")),
        step(3, StepResult.failed("❌ 3 broke")),
        step(4, StepResult.warning("⚠️ 4")),
        step(5, StepResult.ok("✓ 5")),
    ]
    events, report = _run(steps)
    assert ran == [1, 2, 3, 4, 5]
    assert _logs(events) == ["✓ 1", "✓ 2", "❌ 3 broke", "⚠️ 4", "✓ 5"]
    assert report.steps_run == 5
    assert report.failures == ["❌ 3 broke"]
    assert events[-1] == Failed("Installation failed: ❌ 3 broke")
    assert sum(isinstance(e, (Completed, Failed)) for e in events) == 1


def test_warning_is_not_a_failure():
    events, report = _run([Step("w", lambda c: StepResult.warning("⚠️ slow"))])
    assert report.succeeded
    assert events[-1] == Completed()


def test_completed_even_without_marker():
    events, report = _run([_ok("✓ only")])
    assert not report.reached_completion
    assert events[-1] == Completed()


def test_multiline_result_sent_as_batch():
    events, _ = _run([Step("pull", lambda c: StepResult.ok("✅ pulled\nOutput: a\nb"))])
    assert BatchLog(("✅ pulled", "Output: a", "b")) in events


def test_raising_step_becomes_failed_line():
    def boom(config):
        raise ValueError("kaboom")

    events, report = _run([Step("Writing files", boom), _ok("✓ after")])
    assert _logs(events) == ["❌ Writing files failed: kaboom", "✓ after"]
    assert isinstance(events[-1], Failed)
    assert "kaboom" in events[-1].reason


def test_steps_see_the_config_they_were_given():
    seen = []
    config = InstallConfig(base_domain="example.com")
    _run([Step("read", lambda c: seen.append(c.base_domain) or StepResult.ok("✓"))], config)
    assert seen == ["example.com"]


@pytest.mark.asyncio
async def test_refuses_concurrent_runs():
    gate = asyncio.Event()
    loop = asyncio.get_running_loop()

    def wait(config):
        asyncio.run_coroutine_threadsafe(gate.wait(), loop).result()
        return StepResult.ok("✓")

    orch = Orchestrator(lambda e: None)
    first = asyncio.create_task(orch.run([Step("wait", wait)], InstallConfig()))
    await asyncio.sleep(0.05)
    assert orch.running
    with pytest.raises(OrchestratorBusy):
        await orch.run([_ok("✓")], InstallConfig())
    gate.set()
    report = await first
    assert report.succeeded
    assert not orch.running
