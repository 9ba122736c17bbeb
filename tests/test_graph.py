# tests/test_graph.py
"""
Screen graph tests: every forward edge walked with the config a user would
have produced must be undone by the matching backward edge.
"""
import itertools

import pytest

from state import InstallConfig
from wizard.graph import YES, ScreenID, next_screen, prev_screen

NO = 1


def _config(**kwargs) -> InstallConfig:
    cfg = InstallConfig()
    for key, value in kwargs.items():
        setattr(cfg, key, value)
    return cfg


def _walk(hybrid, email, install, crowdsec, manage):
    """Drive the graph like the controller: record each choice in config first."""
    cfg = InstallConfig()
    choices = {
        ScreenID.HYBRID_MODE: ("hybrid_mode", hybrid),
        ScreenID.HYBRID_CREDENTIALS: ("has_hybrid_credentials", True),
        ScreenID.EMAIL_CONFIG: ("enable_email", email),
        ScreenID.ADVANCED_CONFIG: ("enable_ipv6", False),
        ScreenID.CONTAINER: ("container_type", cfg.container_type),
        ScreenID.INSTALL_CONTAINERS: ("install_containers", install),
        ScreenID.CROWDSEC: ("install_crowdsec", crowdsec),
        ScreenID.CROWDSEC_MANAGE: ("manage_crowdsec", manage),
    }
    path = [ScreenID.WELCOME]
    while path[-1] is not ScreenID.COMPLETE:
        screen = path[-1]
        choice = YES
        if screen in choices:
            attr, value = choices[screen]
            setattr(cfg, attr, value)
            if isinstance(value, bool):
                choice = YES if value else NO
        path.append(next_screen(screen, choice, cfg))
        assert len(path) < 20, f"no progress: {path}"
    return path, cfg


ALL_PATHS = list(itertools.product([True, False], repeat=5))


@pytest.mark.parametrize("hybrid,email,install,crowdsec,manage", ALL_PATHS)
def test_back_undoes_forward(hybrid, email, install, crowdsec, manage):
    path, cfg = _walk(hybrid, email, install, crowdsec, manage)
    for before, after in zip(path, path[1:-1]):
        assert prev_screen(after, cfg) is before, f"{after.value} -> back gave wrong screen"


def test_standard_path_with_everything():
    path, _ = _walk(hybrid=False, email=True, install=True, crowdsec=True, manage=True)
    assert path == [
        ScreenID.WELCOME, ScreenID.HYBRID_MODE, ScreenID.DOMAIN_CONFIG,
        ScreenID.EMAIL_CONFIG, ScreenID.EMAIL_INPUT, ScreenID.ADVANCED_CONFIG,
        ScreenID.CONTAINER, ScreenID.INSTALL_CONTAINERS, ScreenID.INSTALL,
        ScreenID.CROWDSEC, ScreenID.CROWDSEC_MANAGE, ScreenID.CROWDSEC_INSTALL,
        ScreenID.SETUP_TOKEN, ScreenID.COMPLETE,
    ]


def test_hybrid_path_skips_email_and_crowdsec():
    path, _ = _walk(hybrid=True, email=True, install=False, crowdsec=True, manage=True)
    assert path == [
        ScreenID.WELCOME, ScreenID.HYBRID_MODE, ScreenID.HYBRID_CREDENTIALS,
        ScreenID.DOMAIN_CONFIG, ScreenID.ADVANCED_CONFIG, ScreenID.CONTAINER,
        ScreenID.INSTALL_CONTAINERS, ScreenID.SETUP_TOKEN, ScreenID.COMPLETE,
    ]


def test_declining_management_skips_crowdsec_install():
    cfg = _config(manage_crowdsec=False)
    assert next_screen(ScreenID.CROWDSEC_MANAGE, NO, cfg) is ScreenID.SETUP_TOKEN
    assert prev_screen(ScreenID.SETUP_TOKEN, _config(install_crowdsec=True)) is ScreenID.CROWDSEC_MANAGE


def test_install_returns_to_crowdsec_or_setup_token():
    assert next_screen(ScreenID.INSTALL, YES, _config()) is ScreenID.CROWDSEC
    assert next_screen(ScreenID.INSTALL, YES, _config(hybrid_mode=True)) is ScreenID.SETUP_TOKEN


def test_fixed_points():
    cfg = InstallConfig()
    assert prev_screen(ScreenID.WELCOME, cfg) is ScreenID.WELCOME
    assert next_screen(ScreenID.COMPLETE, YES, cfg) is ScreenID.COMPLETE
    assert prev_screen(ScreenID.COMPLETE, cfg) is ScreenID.COMPLETE
