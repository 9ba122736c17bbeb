# wizard/controller.py
"""
Wizard controller: the single owner of the installer's interactive state.

The controller knows nothing about Textual. The screen feeds it input
events (`handle_navigate`, `handle_enter`, `go_back`, ...) and orchestrator
events (`handle_event`), then renders whatever state results. Every input
method returns a `NavResult` telling the caller whether to stay, redraw a
new screen or exit.

Provisioning is launched through the `launcher` callback with a deep copy
of the configuration, so steps never observe later edits. While a flow is
running the controller is BUSY and ignores everything except orchestrator
events and `quit()`.
"""
from __future__ import annotations
import copy
from enum import Enum
from typing import Callable, List, Optional, Sequence

from state import ContainerType, InstallConfig
from validators import (
    compose_dashboard_domain, parse_port, validate_email, validate_required,
)
from wizard.fields import Field, build_fields
from wizard.graph import YES, ScreenID, next_screen, prev_screen
from provision.flows import FlowKind
from provision.log_sink import LogSink
from provision.orchestrator import (
    BatchLog, Completed, Failed, InstallEvent, StepLabel, StepLog,
)
from logger import log

Launcher = Callable[[FlowKind, InstallConfig], None]

# Entering one of these moving forward starts its flow.
PROVISIONING_SCREENS = {
    ScreenID.INSTALL: FlowKind.PRIMARY_INSTALL,
    ScreenID.CROWDSEC_INSTALL: FlowKind.SECURITY_AGENT,
}


class NavResult(str, Enum):
    STAY = "stay"
    MOVED = "moved"
    EXIT = "exit"


class Activity(str, Enum):
    IDLE = "idle"
    BUSY = "busy"


class WizardController:
    def __init__(
        self,
        config: Optional[InstallConfig] = None,
        *,
        launcher: Optional[Launcher] = None,
        public_address: Optional[str] = None,
        existing_install: bool = False,
        port_warnings: Sequence[str] = (),
    ) -> None:
        self.config = config or InstallConfig()
        self.launcher = launcher
        self.existing_install = existing_install
        self.port_warnings = list(port_warnings)
        self.public_address = public_address

        self.screen = ScreenID.WELCOME
        self.fields: List[Field] = []
        self.focus_index = 0
        self.last_choice = 0
        self.error = ""
        self.activity = Activity.IDLE
        self.active_flow: Optional[FlowKind] = None
        self.flow_succeeded: Optional[bool] = None
        self.install_step = ""
        self.log = LogSink()
        self.generation = 0
        self._enter(ScreenID.WELCOME, forward=False)

    # -- Queries -----------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self.activity is Activity.BUSY

    @property
    def focused_field(self) -> Optional[Field]:
        if not self.fields:
            return None
        return self.fields[self.focus_index]

    @property
    def has_buttons(self) -> bool:
        return any(f.is_button for f in self.fields)

    def value_of(self, label: str) -> str:
        for f in self.fields:
            if f.label == label:
                return f.value
        return ""

    # -- Input events ------------------------------------------------------

    def handle_navigate(self, direction: int) -> NavResult:
        if self.busy or not self.fields:
            return NavResult.STAY
        self.error = ""
        step = 1 if direction > 0 else -1
        self.focus_index = (self.focus_index + step) % len(self.fields)
        return NavResult.STAY

    def handle_enter(self) -> NavResult:
        if self.busy:
            return NavResult.STAY
        if not self.fields:
            return self._advance()
        if self.focused_field.is_button:
            return self.activate_button()
        if self.focus_index < len(self.fields) - 1:
            return self.handle_navigate(1)
        return self.submit_screen()

    def focus_field(self, index: int) -> None:
        if not self.busy and 0 <= index < len(self.fields):
            self.focus_index = index

    def set_value(self, index: int, value: str) -> None:
        if not self.busy and 0 <= index < len(self.fields) and self.fields[index].is_input:
            self.fields[index].value = value

    def activate_button(self) -> NavResult:
        field = self.focused_field
        if self.busy or field is None or not field.is_button:
            return NavResult.STAY

        buttons = [f for f in self.fields if f.is_button]
        self.last_choice = buttons.index(field)
        yes = self.last_choice == YES
        config = self.config
        screen = self.screen
        log.info("Screen %s: chose '%s'", screen.value, field.label)

        if screen is ScreenID.HYBRID_MODE:
            config.hybrid_mode = yes
        elif screen is ScreenID.HYBRID_CREDENTIALS:
            config.has_hybrid_credentials = yes
        elif screen in (ScreenID.DOMAIN_CONFIG, ScreenID.EMAIL_INPUT):
            return self.submit_screen()
        elif screen is ScreenID.EMAIL_CONFIG:
            config.enable_email = yes
        elif screen is ScreenID.ADVANCED_CONFIG:
            config.enable_ipv6 = yes
        elif screen is ScreenID.CONTAINER:
            config.container_type = ContainerType.DOCKER if yes else ContainerType.PODMAN
        elif screen is ScreenID.INSTALL_CONTAINERS:
            config.install_containers = yes
            self._launch(FlowKind.CONFIG_THEN_BRANCH)
            return NavResult.STAY
        elif screen is ScreenID.CROWDSEC:
            config.install_crowdsec = yes
        elif screen is ScreenID.CROWDSEC_MANAGE:
            config.manage_crowdsec = yes
        elif screen is ScreenID.COMPLETE:
            return NavResult.EXIT

        return self._advance()

    def submit_screen(self) -> NavResult:
        if self.busy:
            return NavResult.STAY
        for f in self.fields:
            if f.is_input and f.required:
                ok, msg = validate_required(f.label, f.value)
                if not ok:
                    self.error = msg
                    return NavResult.STAY

        if self.screen is ScreenID.DOMAIN_CONFIG:
            if not self._save_domain():
                return NavResult.STAY
        elif self.screen is ScreenID.EMAIL_INPUT:
            self._save_email()
        return self._advance()

    def go_back(self) -> NavResult:
        if self.busy:
            return NavResult.STAY
        if self.screen is ScreenID.WELCOME:
            return NavResult.EXIT
        previous = prev_screen(self.screen, self.config)
        if previous is self.screen:
            return NavResult.EXIT
        log.info("Back: %s -> %s", self.screen.value, previous.value)
        self._enter(previous, forward=False)
        return NavResult.MOVED

    def set_public_address(self, address: Optional[str]) -> None:
        """Store the looked-up public address and fill an empty hybrid address field."""
        self.public_address = address
        if not address or self.screen is not ScreenID.DOMAIN_CONFIG or not self.config.hybrid_mode:
            return
        field = self.fields[0]
        if not field.value.strip():
            field.value = address
            self.generation += 1

    def quit(self) -> NavResult:
        log.info("Quit requested on %s (activity=%s)", self.screen.value, self.activity.value)
        return NavResult.EXIT

    # -- Orchestrator events -----------------------------------------------

    def handle_event(self, event: InstallEvent) -> NavResult:
        if isinstance(event, StepLabel):
            self.install_step = event.text
        elif isinstance(event, StepLog):
            self.log.append(event.text)
        elif isinstance(event, BatchLog):
            self.log.extend(event.lines)
        elif isinstance(event, Completed):
            flow = self.active_flow
            self._finish(succeeded=True)
            if flow is not None and flow.advances_on_success:
                return self._advance()
        elif isinstance(event, Failed):
            self._finish(succeeded=False)
            self.error = event.reason
        return NavResult.STAY

    # -- Internals ---------------------------------------------------------

    def _save_domain(self) -> bool:
        config = self.config
        if config.hybrid_mode:
            config.dashboard_domain = self.fields[0].value.strip()
            config.base_domain = ""
        else:
            base = self.fields[0].value.strip()
            subdomain = self.fields[1].value.strip()
            email = self.fields[2].value.strip()
            ok, msg = validate_email(email)
            if not ok:
                self.error = msg
                return False
            config.base_domain = base
            config.dashboard_domain = compose_dashboard_domain(base, subdomain)
            config.letsencrypt_email = email
        config.install_gerbil = True
        log.info("Dashboard domain set to %s", config.dashboard_domain)
        return True

    def _save_email(self) -> None:
        config = self.config
        config.smtp_host = self.value_of("SMTP Host").strip()
        config.smtp_port = parse_port(self.value_of("SMTP Port"))
        config.smtp_user = self.value_of("SMTP Username").strip()
        config.smtp_password = self.value_of("SMTP Password")
        config.no_reply_email = self.value_of("No-Reply Email").strip()

    def _advance(self) -> NavResult:
        target = next_screen(self.screen, self.last_choice, self.config)
        if target is self.screen:
            return NavResult.STAY
        log.info("Next: %s -> %s", self.screen.value, target.value)
        self._enter(target, forward=True)
        return NavResult.MOVED

    def _enter(self, screen: ScreenID, forward: bool) -> None:
        self.screen = screen
        self.fields, self.focus_index = build_fields(
            screen, self.config, public_address=self.public_address,
        )
        self.error = ""
        self.generation += 1
        if forward and screen in PROVISIONING_SCREENS:
            self._launch(PROVISIONING_SCREENS[screen])

    def _launch(self, kind: FlowKind) -> None:
        self.activity = Activity.BUSY
        self.active_flow = kind
        self.flow_succeeded = None
        self.install_step = ""
        self.error = ""
        log.info("Launching %s on %s", kind.value, self.screen.value)
        if self.launcher is not None:
            self.launcher(kind, copy.deepcopy(self.config))

    def _finish(self, succeeded: bool) -> None:
        log.info(
            "%s %s", self.active_flow.value if self.active_flow else "flow",
            "completed" if succeeded else "failed",
        )
        self.activity = Activity.IDLE
        self.flow_succeeded = succeeded
        self.active_flow = None
        self.install_step = ""
