# tests/conftest.py
import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unittest.mock import MagicMock

import pytest
from state import InstallConfig
from provision.flows import HostServices


@pytest.fixture
def config():
    return InstallConfig()


@pytest.fixture
def services():
    """HostServices whose collaborators are all mocks that succeed."""
    files = MagicMock()
    files.has_compose_file.return_value = True
    files.load.return_value = None
    runtime = MagicMock()
    runtime.is_installed.return_value = True
    runtime.is_live.return_value = True
    runtime.wait_until_live.return_value = True
    runtime.compose_version.return_value = "Docker Compose version v2.27.0"
    runtime.pull_images.return_value = ("pulled", True)
    runtime.start_containers.return_value = ("started", True)
    return HostServices(
        files=files,
        runtime=runtime,
        crowdsec=MagicMock(),
        generate_secret=lambda: "s3cret",
        resolve_versions=MagicMock(),
    )
