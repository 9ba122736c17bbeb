# host/network.py
from __future__ import annotations
import ipaddress
import socket
from typing import List, Optional, Tuple

import httpx

from state import InstallConfig
from logger import log

PUBLIC_IP_SERVICES = [
    "https://ifconfig.io/ip",
    "https://api.ipify.org",
    "https://icanhazip.com",
]
GITHUB_LATEST = "https://api.github.com/repos/{repo}/releases/latest"
RELEASE_REPOS = {
    "pangolin": "fosrl/pangolin",
    "gerbil": "fosrl/gerbil",
    "badger": "fosrl/badger",
}


def resolve_public_address(timeout: float = 3.0) -> Optional[str]:
    """Return this host's public IPv4/IPv6 address, or None if no service answers."""
    for url in PUBLIC_IP_SERVICES:
        try:
            response = httpx.get(url, timeout=timeout)
        except httpx.HTTPError as e:
            log.debug("Public IP lookup via %s failed: %s", url, e)
            continue
        if response.status_code != 200:
            continue
        candidate = response.text.strip()
        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            continue
        log.info("Public address resolved to %s via %s", candidate, url)
        return candidate
    log.warning("Could not determine public IP address")
    return None


def check_port_available(port: int, host: str = "0.0.0.0") -> Tuple[bool, str]:
    """Try to bind `port`; (False, reason) when another service holds it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            return False, f"port {port} is in use or not bindable ({e.strerror or e})"
    return True, ""


def latest_release(repo: str, timeout: float = 5.0) -> Optional[str]:
    try:
        response = httpx.get(
            GITHUB_LATEST.format(repo=repo),
            headers={"Accept": "application/vnd.github+json"},
            timeout=timeout,
        )
        response.raise_for_status()
        tag = response.json().get("tag_name")
    except (httpx.HTTPError, ValueError) as e:
        log.warning("Could not resolve latest release of %s: %s", repo, e)
        return None
    return tag or None


def resolve_versions(config: InstallConfig) -> None:
    """Fill `config.versions` with the latest release tags, keeping defaults on failure."""
    for attr, repo in RELEASE_REPOS.items():
        tag = latest_release(repo)
        if tag:
            setattr(config.versions, attr, tag)
    log.info(
        "Versions: pangolin=%s gerbil=%s badger=%s",
        config.versions.pangolin, config.versions.gerbil, config.versions.badger,
    )


def port_warnings(ports=(80, 443)) -> List[str]:
    """Human-readable warnings for each of `ports` that is already taken."""
    warnings = []
    for port in ports:
        ok, msg = check_port_available(port)
        if not ok:
            log.warning("Port check: %s", msg)
            warnings.append(msg)
    return warnings
