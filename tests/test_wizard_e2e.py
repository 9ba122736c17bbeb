# tests/test_wizard_e2e.py
"""
End-to-end headless Pilot tests for the Pangolin installer.

Host collaborators (files, container runtime, CrowdSec, network lookups)
are replaced by mocks, so the tests run without root and without touching
the host.
"""
from __future__ import annotations

import threading
from unittest.mock import AsyncMock, patch

import pytest
from textual.widgets import Button, Input

from app import PangolinInstaller
from provision.orchestrator import Orchestrator, StepLog
from wizard.graph import ScreenID
from widgets.log_viewer import InstallLogViewer


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _app(services) -> PangolinInstaller:
    return PangolinInstaller(services=services, public_address=lambda: "203.0.113.7")


async def _wait_for(pilot, condition, timeout=5.0):
    waited = 0.0
    while not condition() and waited < timeout:
        await pilot.pause(0.1)
        waited += 0.1
    assert condition(), "condition not reached"


async def _set_input(pilot, widget_id: str, value: str) -> None:
    pilot.app.screen.query_one(widget_id, Input).value = value
    await pilot.pause()


async def _to_domain(pilot) -> None:
    await pilot.press("enter")         # welcome
    await pilot.pause()
    await pilot.press("enter")         # hybrid mode: "No" is focused
    await pilot.pause()


async def _to_install_containers(pilot) -> None:
    await _to_domain(pilot)
    await _set_input(pilot, "#field_0", "example.com")
    await _set_input(pilot, "#field_2", "admin@example.com")
    for _ in range(4):                 # over the inputs, then Continue
        await pilot.press("enter")
        await pilot.pause()
    for _ in range(3):                 # no email, no IPv6, Docker
        await pilot.press("enter")
        await pilot.pause()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_starts_on_welcome(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause()
        assert type(pilot.app.screen).__name__ == "WizardScreen"
        assert app.controller.screen is ScreenID.WELCOME
        assert len(pilot.app.screen.query(Button)) == 0


@pytest.mark.asyncio
async def test_existing_install_loaded(services):
    from state import InstallConfig
    services.files.load.return_value = InstallConfig(
        base_domain="example.com", dashboard_domain="pangolin.example.com",
    )
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause()
        assert app.controller.existing_install
        await _to_domain(pilot)
        assert pilot.app.screen.query_one("#field_0", Input).value == "example.com"


@pytest.mark.asyncio
async def test_arrow_keys_move_between_buttons(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.press("enter")
        await pilot.pause()
        assert app.controller.screen is ScreenID.HYBRID_MODE
        assert app.controller.focus_index == 1
        await pilot.press("left")
        await pilot.pause()
        assert app.controller.focus_index == 0
        assert pilot.app.screen.focused.id == "field_0"


@pytest.mark.asyncio
async def test_domain_form_builds_dashboard_url(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await _to_domain(pilot)
        assert app.controller.screen is ScreenID.DOMAIN_CONFIG
        assert len(pilot.app.screen.query(Input)) == 3

        await _set_input(pilot, "#field_0", "example.com")
        await _set_input(pilot, "#field_1", "dash")
        await _set_input(pilot, "#field_2", "admin@example.com")
        for _ in range(4):
            await pilot.press("enter")
            await pilot.pause()

        assert app.controller.screen is ScreenID.EMAIL_CONFIG
        assert app.controller.config.dashboard_domain == "dash.example.com"


@pytest.mark.asyncio
async def test_missing_base_domain_shows_error(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await _to_domain(pilot)
        for _ in range(4):             # through the three inputs, then Continue
            await pilot.press("enter")
            await pilot.pause()
        assert app.controller.screen is ScreenID.DOMAIN_CONFIG
        assert app.controller.error == "Base Domain is required"


@pytest.mark.asyncio
async def test_escape_goes_back(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await _to_domain(pilot)
        await pilot.press("escape")
        await pilot.pause()
        assert app.controller.screen is ScreenID.HYBRID_MODE


@pytest.mark.asyncio
async def test_escape_on_welcome_exits(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        with patch.object(app, "exit", wraps=app.exit) as exit_mock:
            await pilot.press("escape")
            await pilot.pause()
        exit_mock.assert_called_once()


@pytest.mark.asyncio
async def test_install_runs_to_completion(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await _to_install_containers(pilot)
        assert app.controller.screen is ScreenID.INSTALL_CONTAINERS

        await pilot.press("left", "enter")  # Yes: write config, then install
        await _wait_for(
            pilot,
            lambda: app.controller.screen is ScreenID.INSTALL and not app.controller.busy,
        )

        await pilot.pause()
        assert app.controller.flow_succeeded is True
        assert "🎉 Installation completed successfully!" in app.controller.log.lines
        viewer = pilot.app.screen.query_one("#install_log", InstallLogViewer)
        assert viewer.display
        assert viewer.line_count > 0
        services.runtime.start_containers.assert_called_once()

        await pilot.press("enter")
        await pilot.pause()
        assert app.controller.screen is ScreenID.CROWDSEC


@pytest.mark.asyncio
async def test_failed_install_reported(services):
    services.runtime.pull_images.return_value = ("manifest unknown", False)
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await _to_install_containers(pilot)
        await pilot.press("left", "enter")
        await _wait_for(
            pilot,
            lambda: app.controller.screen is ScreenID.INSTALL and not app.controller.busy,
        )
        assert app.controller.flow_succeeded is False
        assert "Image pull failed" in app.controller.error


@pytest.mark.asyncio
async def test_skipping_containers_goes_to_crowdsec(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await _to_install_containers(pilot)
        await pilot.press("enter")     # No is focused for a fresh install
        await _wait_for(pilot, lambda: app.controller.screen is ScreenID.CROWDSEC)
        services.files.write.assert_called_once()
        services.runtime.pull_images.assert_not_called()


@pytest.mark.asyncio
async def test_slow_address_lookup_does_not_block_input(services):
    release = threading.Event()

    def slow_lookup():
        release.wait(5)
        return "198.51.100.4"

    app = PangolinInstaller(services=services, public_address=slow_lookup)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.press("enter")     # welcome
        await pilot.pause()
        await pilot.press("left", "enter")  # hybrid: Yes
        await pilot.pause()
        await pilot.press("left", "enter")  # credentials: Yes
        await pilot.pause()
        assert app.controller.screen is ScreenID.DOMAIN_CONFIG
        assert pilot.app.screen.query_one("#field_0", Input).value == ""

        release.set()
        await _wait_for(
            pilot,
            lambda: pilot.app.screen.query_one("#field_0", Input).value == "198.51.100.4",
        )
        assert app.controller.fields[0].value == "198.51.100.4"


@pytest.mark.asyncio
async def test_install_events_applied_on_message_loop(services):
    app = _app(services)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause()
        screen = pilot.app.screen
        before = len(app.controller.log)
        screen._on_install_event(StepLog("✓ from worker"))
        assert len(app.controller.log) == before
        await pilot.pause()
        assert "✓ from worker" in app.controller.log.lines


@pytest.mark.asyncio
async def test_crashed_worker_releases_busy_state(services):
    app = _app(services)
    with patch.object(Orchestrator, "run", AsyncMock(side_effect=RuntimeError("boom"))):
        async with app.run_test(headless=True, size=(120, 40)) as pilot:
            await _to_install_containers(pilot)
            await pilot.press("left", "enter")
            await _wait_for(pilot, lambda: not app.controller.busy)
            assert app.controller.screen is ScreenID.INSTALL_CONTAINERS
            assert app.controller.flow_succeeded is False
            assert "boom" in app.controller.error
