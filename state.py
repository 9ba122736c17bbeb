# state.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class ContainerType(str, Enum):
    DOCKER = "docker"
    PODMAN = "podman"


DEFAULT_SUBDOMAIN = "pangolin"
DEFAULT_SMTP_PORT = 587


@dataclass
class SoftwareVersions:
    pangolin: str = "latest"
    gerbil: str = "latest"
    badger: str = "v1.2.0"
    traefik: str = "v3.4.0"


@dataclass
class InstallConfig:
    # Installation mode
    hybrid_mode: bool = False
    has_hybrid_credentials: bool = False

    # Domain
    base_domain: str = ""
    dashboard_domain: str = ""
    letsencrypt_email: str = ""

    # Email
    enable_email: bool = False
    smtp_host: str = ""
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: str = ""
    smtp_password: str = ""
    no_reply_email: str = ""

    # Advanced
    enable_ipv6: bool = False
    install_gerbil: bool = True

    # Containers
    container_type: ContainerType = ContainerType.DOCKER
    install_containers: bool = False

    # CrowdSec
    install_crowdsec: bool = False
    manage_crowdsec: bool = False

    # Filled in right before provisioning
    secret: str = ""
    versions: SoftwareVersions = field(default_factory=SoftwareVersions)
