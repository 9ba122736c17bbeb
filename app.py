# app.py
from __future__ import annotations
from pathlib import Path
from typing import Callable, Optional, Sequence

from textual.app import App

from host.errors import HostError
from host.network import resolve_public_address
from provision.flows import HostServices
from wizard.controller import WizardController
from logger import log, set_console_logging


class PangolinInstaller(App):
    """Pangolin interactive installer."""

    TITLE = "Pangolin Installer"

    CSS = """
    Screen {
        background: $surface;
    }
    .title {
        text-style: bold;
        color: #F97317;
        margin-bottom: 1;
    }
    #content {
        margin: 1 2;
    }
    #form {
        height: auto;
        margin: 1 0;
    }
    #field_buttons {
        height: 3;
        align: left middle;
    }
    Button {
        margin: 0 1;
    }
    Input {
        margin-bottom: 1;
    }
    #err_msg {
        margin-top: 1;
        color: $error;
    }
    """

    def __init__(
        self,
        workdir: Optional[Path] = None,
        services: Optional[HostServices] = None,
        public_address: Optional[Callable[[], Optional[str]]] = resolve_public_address,
        port_warnings: Sequence[str] = (),
    ) -> None:
        super().__init__()
        self.workdir = Path(workdir) if workdir else Path.cwd()
        self.services = services or HostServices.for_workdir(self.workdir)

        try:
            existing = self.services.files.load()
        except HostError as e:
            log.warning("Ignoring unreadable existing configuration: %s", e)
            existing = None

        self.public_address = public_address
        self.controller = WizardController(
            existing,
            existing_install=existing is not None,
            port_warnings=port_warnings,
        )
        log.info(
            "PangolinInstaller started in %s (existing install: %s)",
            self.workdir, existing is not None,
        )

    async def on_mount(self) -> None:
        from screens.wizard_screen import WizardScreen
        set_console_logging(False)
        await self.push_screen(WizardScreen(self.controller, self.services, self.public_address))

    def on_unmount(self) -> None:
        set_console_logging(True)
