# screens/wizard_screen.py
from __future__ import annotations
import asyncio
from typing import Callable, List, Optional

from rich.markup import escape
from textual import events
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.screen import Screen
from textual.widget import Widget
from textual.widgets import Button, Footer, Input, Label, Static
from textual.worker import Worker, WorkerState

from state import InstallConfig
from wizard.controller import NavResult, WizardController
from wizard.graph import ScreenID
from provision.flows import FlowKind, HostServices, build_steps
from provision.orchestrator import Failed, InstallEvent, Orchestrator
from screens import views
from widgets.log_viewer import InstallLogViewer
from widgets.pangolin_header import PangolinHeader
from logger import log

LOG_SCREENS = {ScreenID.INSTALL_CONTAINERS, ScreenID.INSTALL, ScreenID.CROWDSEC_INSTALL}


class WizardScreen(Screen):
    """Renders the wizard controller and feeds it keys, clicks and install events."""

    BINDINGS = [
        Binding("enter", "enter", "Select", priority=True),
        Binding("tab", "navigate(1)", "Next field", priority=True),
        Binding("shift+tab", "navigate(-1)", "Prev field", priority=True),
        Binding("escape", "back", "Back", priority=True),
        Binding("ctrl+c", "quit", "Quit", priority=True),
        Binding("left", "arrow(-1)", "Left", show=False),
        Binding("right", "arrow(1)", "Right", show=False),
        Binding("up", "scroll_logs(-1)", "Scroll up", show=False),
        Binding("down", "scroll_logs(1)", "Scroll down", show=False),
    ]

    class InstallProgress(Message):
        """Carries one orchestrator event from the provisioning worker."""

        def __init__(self, event: InstallEvent) -> None:
            super().__init__()
            self.event = event

    class PublicAddressResolved(Message):
        def __init__(self, address: Optional[str]) -> None:
            super().__init__()
            self.address = address

    def __init__(
        self,
        controller: WizardController,
        services: HostServices,
        lookup_address: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.services = services
        self.lookup_address = lookup_address
        self.controller.launcher = self.launch_flow
        self._orchestrator = Orchestrator(emit=self._on_install_event)
        self._generation = -1

    def compose(self) -> ComposeResult:
        yield PangolinHeader()
        with VerticalScroll(id="content"):
            yield Static("", id="title", classes="title")
            yield Static("", id="body")
            yield Vertical(id="form")
            yield InstallLogViewer(id="install_log")
            yield Static("", id="err_msg")
        yield Footer()

    async def on_mount(self) -> None:
        if self.lookup_address is not None and self.controller.public_address is None:
            self.run_worker(self._lookup_public_address(), group="lookup", exit_on_error=False)
        await self.sync_view()

    # -- Rendering ---------------------------------------------------------

    def _field_widgets(self) -> List[Widget]:
        c = self.controller
        widgets: List[Widget] = []
        buttons: List[Button] = []
        for i, f in enumerate(c.fields):
            if f.is_input:
                widgets.append(Label(f"{f.label} *" if f.required else f.label))
                widgets.append(Input(
                    value=f.value,
                    placeholder=f.placeholder,
                    password=f.password,
                    id=f"field_{i}",
                    name=f"{c.generation}:{i}",
                ))
            else:
                buttons.append(Button(f.label, id=f"field_{i}"))
        if buttons:
            widgets.append(Horizontal(*buttons, id="field_buttons"))
        return widgets

    def _field_widget(self, index: int) -> Optional[Widget]:
        matches = self.query(f"#field_{index}")
        return matches.first() if matches else None

    def _sync_focus(self) -> None:
        c = self.controller
        if c.busy or not c.fields:
            self.set_focus(None)
            return
        widget = self._field_widget(c.focus_index)
        if widget is not None and self.focused is not widget:
            self.set_focus(widget)
        for i, f in enumerate(c.fields):
            if f.is_button:
                button = self._field_widget(i)
                if button is not None:
                    button.variant = "primary" if i == c.focus_index else "default"

    async def sync_view(self) -> None:
        c = self.controller
        self.query_one("#title", Static).update(views.title(c.screen))
        self.query_one("#body", Static).update(views.body(c))

        if self._generation != c.generation:
            self._generation = c.generation
            form = self.query_one("#form", Vertical)
            await form.remove_children()
            await form.mount_all(self._field_widgets())
        self._sync_focus()

        viewer = self.query_one("#install_log", InstallLogViewer)
        viewer.display = c.screen in LOG_SCREENS and (c.busy or len(c.log) > 0)
        viewer.show(c.log.lines)

        err = c.error
        self.query_one("#err_msg", Static).update(
            f"[red]Error: {escape(err)}[/red]" if err else ""
        )

    async def _apply(self, result: NavResult) -> None:
        if result is NavResult.EXIT:
            log.info("Exiting installer from %s", self.controller.screen.value)
            self.app.exit()
            return
        await self.sync_view()

    # -- Provisioning ------------------------------------------------------

    def launch_flow(self, kind: FlowKind, snapshot: InstallConfig) -> None:
        steps = build_steps(kind, self.services)
        self.run_worker(
            self._orchestrator.run(steps, snapshot),
            name=kind.value,
            group="provision",
            exit_on_error=False,
        )

    def _on_install_event(self, event: InstallEvent) -> None:
        self.post_message(self.InstallProgress(event))

    async def on_wizard_screen_install_progress(self, message: InstallProgress) -> None:
        self.controller.handle_event(message.event)
        await self.sync_view()

    async def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        worker = event.worker
        if worker.group != "provision" or event.state is not WorkerState.ERROR:
            return
        log.error("Provisioning worker %s crashed: %s", worker.name, worker.error)
        if not self.controller.busy:
            return
        self.controller.handle_event(Failed(f"Installation failed: {worker.error}"))
        await self.sync_view()

    async def _lookup_public_address(self) -> None:
        loop = asyncio.get_running_loop()
        address = await loop.run_in_executor(None, self.lookup_address)
        self.post_message(self.PublicAddressResolved(address))

    async def on_wizard_screen_public_address_resolved(self, message: PublicAddressResolved) -> None:
        self.controller.set_public_address(message.address)
        await self.sync_view()

    # -- Input -------------------------------------------------------------

    async def action_enter(self) -> None:
        await self._apply(self.controller.handle_enter())

    async def action_navigate(self, direction: int) -> None:
        await self._apply(self.controller.handle_navigate(direction))

    async def action_arrow(self, direction: int) -> None:
        c = self.controller
        if c.busy:
            self.action_scroll_logs(direction)
        elif c.has_buttons:
            await self._apply(c.handle_navigate(direction))

    async def action_back(self) -> None:
        await self._apply(self.controller.go_back())

    async def action_quit(self) -> None:
        await self._apply(self.controller.quit())

    def action_scroll_logs(self, direction: int) -> None:
        self.query_one("#install_log", InstallLogViewer).scroll_by_lines(direction)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if not button_id.startswith("field_"):
            return
        self.controller.focus_field(int(button_id.split("_", 1)[1]))
        await self._apply(self.controller.activate_button())

    async def on_input_changed(self, event: Input.Changed) -> None:
        generation, _, index = (event.input.name or "").partition(":")
        if generation != str(self.controller.generation):
            return
        self.controller.set_value(int(index), event.value)
        self.query_one("#body", Static).update(views.body(self.controller))

    def on_descendant_focus(self, event: events.DescendantFocus) -> None:
        widget = event.widget
        if self.focused is not widget or not (widget.id or "").startswith("field_"):
            return
        self.controller.focus_field(int(widget.id.split("_", 1)[1]))
