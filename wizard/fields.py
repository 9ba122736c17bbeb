# wizard/fields.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from state import ContainerType, InstallConfig
from validators import split_subdomain
from wizard.graph import ScreenID


class FieldKind(str, Enum):
    BUTTON = "button"
    INPUT = "input"


@dataclass
class Field:
    kind: FieldKind
    label: str
    required: bool = False
    value: str = ""
    placeholder: str = ""
    password: bool = False

    @property
    def is_button(self) -> bool:
        return self.kind is FieldKind.BUTTON

    @property
    def is_input(self) -> bool:
        return self.kind is FieldKind.INPUT


def button(label: str) -> Field:
    return Field(FieldKind.BUTTON, label)


def text_input(
    label: str,
    required: bool = False,
    *,
    value: str = "",
    placeholder: str = "",
    password: bool = False,
) -> Field:
    return Field(
        FieldKind.INPUT, label, required=required,
        value=value, placeholder=placeholder, password=password,
    )


def _yes_no(yes_selected: bool = True) -> Tuple[List[Field], int]:
    return [button("Yes"), button("No")], (0 if yes_selected else 1)


def build_fields(
    screen: ScreenID,
    config: InstallConfig,
    public_address: Optional[str] = None,
) -> Tuple[List[Field], int]:
    """Return the fresh field set for `screen` and the index to focus.

    Values and the initially focused button are seeded from `config` so
    moving back and forth never loses an answer.
    """
    if screen is ScreenID.HYBRID_MODE:
        return _yes_no(config.hybrid_mode)

    if screen is ScreenID.HYBRID_CREDENTIALS:
        return _yes_no(config.has_hybrid_credentials)

    if screen is ScreenID.DOMAIN_CONFIG:
        if config.hybrid_mode:
            address = config.dashboard_domain
            if not address:
                address = public_address or ""
            return [
                text_input(
                    "Public IP or Domain", True, value=address,
                    placeholder="203.0.113.1 or myserver.example.com",
                ),
                button("Continue"),
            ], 0
        return [
            text_input(
                "Base Domain", True, value=config.base_domain,
                placeholder="example.com",
            ),
            text_input(
                "Dashboard Subdomain",
                value=split_subdomain(config.dashboard_domain, config.base_domain),
                placeholder="pangolin",
            ),
            text_input(
                "Let's Encrypt Email", True, value=config.letsencrypt_email,
                placeholder="admin@example.com",
            ),
            button("Continue"),
        ], 0

    if screen is ScreenID.EMAIL_CONFIG:
        return _yes_no(config.enable_email)

    if screen is ScreenID.EMAIL_INPUT:
        port = str(config.smtp_port) if config.smtp_port > 0 else "587"
        return [
            text_input("SMTP Host", value=config.smtp_host, placeholder="smtp.example.com"),
            text_input("SMTP Port", value=port, placeholder="587"),
            text_input("SMTP Username", value=config.smtp_user),
            text_input("SMTP Password", value=config.smtp_password, password=True),
            text_input(
                "No-Reply Email", value=config.no_reply_email,
                placeholder="noreply@example.com",
            ),
            button("Continue"),
        ], 0

    if screen is ScreenID.ADVANCED_CONFIG:
        return _yes_no(config.enable_ipv6)

    if screen is ScreenID.CONTAINER:
        focus = 1 if config.container_type is ContainerType.PODMAN else 0
        return [button("Docker"), button("Podman")], focus

    if screen is ScreenID.INSTALL_CONTAINERS:
        return _yes_no(config.install_containers)

    if screen is ScreenID.CROWDSEC:
        return _yes_no(config.install_crowdsec)

    if screen is ScreenID.CROWDSEC_MANAGE:
        return _yes_no(config.manage_crowdsec)

    if screen is ScreenID.COMPLETE:
        return [button("Exit")], 0

    # welcome, install, crowdsec_install, setup_token
    return [], 0
