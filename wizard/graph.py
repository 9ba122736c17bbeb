# wizard/graph.py
"""
Screen graph of the installer.

Two pure functions define the wizard's state machine:

    next_screen(screen, last_choice, config)
    prev_screen(screen, config)

Both read only configuration that has already been collected by the time
they run. Every forward edge has a matching backward edge for the config
produced by the screen being left, so `prev_screen(next_screen(s, c, cfg), cfg)`
returns `s`. `welcome` (going back) and `complete` (both directions) are
fixed points: the caller treats a self-loop as "exit" or "stay".
"""
from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, Union

from state import InstallConfig


class ScreenID(str, Enum):
    WELCOME = "welcome"
    HYBRID_MODE = "hybrid_mode"
    HYBRID_CREDENTIALS = "hybrid_credentials"
    DOMAIN_CONFIG = "domain_config"
    EMAIL_CONFIG = "email_config"
    EMAIL_INPUT = "email_input"
    ADVANCED_CONFIG = "advanced_config"
    CONTAINER = "container"
    INSTALL_CONTAINERS = "install_containers"
    INSTALL = "install"
    CROWDSEC = "crowdsec"
    CROWDSEC_MANAGE = "crowdsec_manage"
    CROWDSEC_INSTALL = "crowdsec_install"
    SETUP_TOKEN = "setup_token"
    COMPLETE = "complete"


YES = 0  # first button on every yes/no screen

ForwardRule = Union[ScreenID, Callable[[int, InstallConfig], ScreenID]]
BackwardRule = Union[ScreenID, Callable[[InstallConfig], ScreenID]]


def _after_containers(config: InstallConfig) -> ScreenID:
    if config.hybrid_mode:
        return ScreenID.SETUP_TOKEN
    return ScreenID.CROWDSEC


def _containers_screen(config: InstallConfig) -> ScreenID:
    if config.install_containers:
        return ScreenID.INSTALL
    return ScreenID.INSTALL_CONTAINERS


def _before_advanced(config: InstallConfig) -> ScreenID:
    if config.hybrid_mode:
        return ScreenID.DOMAIN_CONFIG
    if config.enable_email:
        return ScreenID.EMAIL_INPUT
    return ScreenID.EMAIL_CONFIG


def _before_setup_token(config: InstallConfig) -> ScreenID:
    if config.hybrid_mode:
        return _containers_screen(config)
    if not config.install_crowdsec:
        return ScreenID.CROWDSEC
    if not config.manage_crowdsec:
        return ScreenID.CROWDSEC_MANAGE
    return ScreenID.CROWDSEC_INSTALL


FORWARD: Dict[ScreenID, ForwardRule] = {
    ScreenID.WELCOME: ScreenID.HYBRID_MODE,
    ScreenID.HYBRID_MODE: lambda choice, cfg: (
        ScreenID.HYBRID_CREDENTIALS if choice == YES else ScreenID.DOMAIN_CONFIG
    ),
    ScreenID.HYBRID_CREDENTIALS: ScreenID.DOMAIN_CONFIG,
    ScreenID.DOMAIN_CONFIG: lambda choice, cfg: (
        ScreenID.ADVANCED_CONFIG if cfg.hybrid_mode else ScreenID.EMAIL_CONFIG
    ),
    ScreenID.EMAIL_CONFIG: lambda choice, cfg: (
        ScreenID.EMAIL_INPUT if choice == YES else ScreenID.ADVANCED_CONFIG
    ),
    ScreenID.EMAIL_INPUT: ScreenID.ADVANCED_CONFIG,
    ScreenID.ADVANCED_CONFIG: ScreenID.CONTAINER,
    ScreenID.CONTAINER: ScreenID.INSTALL_CONTAINERS,
    ScreenID.INSTALL_CONTAINERS: lambda choice, cfg: (
        ScreenID.INSTALL if choice == YES else _after_containers(cfg)
    ),
    ScreenID.INSTALL: lambda choice, cfg: _after_containers(cfg),
    ScreenID.CROWDSEC: lambda choice, cfg: (
        ScreenID.CROWDSEC_MANAGE if choice == YES else ScreenID.SETUP_TOKEN
    ),
    ScreenID.CROWDSEC_MANAGE: lambda choice, cfg: (
        ScreenID.CROWDSEC_INSTALL if cfg.manage_crowdsec else ScreenID.SETUP_TOKEN
    ),
    ScreenID.CROWDSEC_INSTALL: ScreenID.SETUP_TOKEN,
    ScreenID.SETUP_TOKEN: ScreenID.COMPLETE,
    ScreenID.COMPLETE: ScreenID.COMPLETE,
}

BACKWARD: Dict[ScreenID, BackwardRule] = {
    ScreenID.WELCOME: ScreenID.WELCOME,
    ScreenID.HYBRID_MODE: ScreenID.WELCOME,
    ScreenID.HYBRID_CREDENTIALS: ScreenID.HYBRID_MODE,
    ScreenID.DOMAIN_CONFIG: lambda cfg: (
        ScreenID.HYBRID_CREDENTIALS if cfg.hybrid_mode else ScreenID.HYBRID_MODE
    ),
    ScreenID.EMAIL_CONFIG: ScreenID.DOMAIN_CONFIG,
    ScreenID.EMAIL_INPUT: ScreenID.EMAIL_CONFIG,
    ScreenID.ADVANCED_CONFIG: _before_advanced,
    ScreenID.CONTAINER: ScreenID.ADVANCED_CONFIG,
    ScreenID.INSTALL_CONTAINERS: ScreenID.CONTAINER,
    ScreenID.INSTALL: ScreenID.INSTALL_CONTAINERS,
    ScreenID.CROWDSEC: _containers_screen,
    ScreenID.CROWDSEC_MANAGE: ScreenID.CROWDSEC,
    ScreenID.CROWDSEC_INSTALL: ScreenID.CROWDSEC_MANAGE,
    ScreenID.SETUP_TOKEN: _before_setup_token,
    ScreenID.COMPLETE: ScreenID.COMPLETE,
}


def next_screen(current: ScreenID, last_choice: int, config: InstallConfig) -> ScreenID:
    rule = FORWARD.get(current, ScreenID.WELCOME)
    if isinstance(rule, ScreenID):
        return rule
    return rule(last_choice, config)


def prev_screen(current: ScreenID, config: InstallConfig) -> ScreenID:
    rule = BACKWARD.get(current, ScreenID.WELCOME)
    if isinstance(rule, ScreenID):
        return rule
    return rule(config)
