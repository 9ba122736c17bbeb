# tests/test_network.py
import socket
from unittest.mock import MagicMock, patch

import httpx

from state import InstallConfig
from host import network


def _response(status=200, text="", json=None):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    resp.json.return_value = json or {}
    return resp


def test_public_address_first_valid_answer():
    answers = [httpx.ConnectError("down"), _response(text="not an ip"), _response(text="203.0.113.7\n")]
    with patch("host.network.httpx.get", side_effect=answers):
        assert network.resolve_public_address() == "203.0.113.7"


def test_public_address_none_when_all_fail():
    with patch("host.network.httpx.get", side_effect=httpx.ConnectError("down")):
        assert network.resolve_public_address() is None


def test_latest_release_reads_tag():
    with patch("host.network.httpx.get", return_value=_response(json={"tag_name": "1.6.0"})):
        assert network.latest_release("fosrl/pangolin") == "1.6.0"


def test_resolve_versions_keeps_defaults_on_failure():
    config = InstallConfig()
    with patch("host.network.httpx.get", side_effect=httpx.ConnectError("offline")):
        network.resolve_versions(config)
    assert config.versions.pangolin == "latest"
    assert config.versions.badger == "v1.2.0"


def test_resolve_versions_sets_tags():
    config = InstallConfig()
    with patch("host.network.latest_release", side_effect=["1.6.0", "1.2.1", None]):
        network.resolve_versions(config)
    assert config.versions.pangolin == "1.6.0"
    assert config.versions.gerbil == "1.2.1"
    assert config.versions.badger == "v1.2.0"


def test_port_in_use_reported():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
        holder.bind(("127.0.0.1", 0))
        holder.listen(1)
        port = holder.getsockname()[1]
        ok, msg = network.check_port_available(port, host="127.0.0.1")
    assert not ok
    assert str(port) in msg


def test_port_warnings_lists_only_taken_ports():
    results = {80: (False, "port 80 is in use"), 443: (True, "")}
    with patch("host.network.check_port_available", side_effect=lambda p: results[p]):
        assert network.port_warnings() == ["port 80 is in use"]
