# host/files.py
from __future__ import annotations
import os
import secrets
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from state import ContainerType, InstallConfig
from host.errors import HostError
from validators import parse_port
from logger import log

CONFIG_DIR = "config"
APP_CONFIG = "config.yml"
TRAEFIK_DIR = "traefik"
TRAEFIK_CONFIG = "traefik_config.yml"
DYNAMIC_CONFIG = "dynamic_config.yml"
COMPOSE_FILE = "docker-compose.yml"
LETSENCRYPT_STORAGE = "/letsencrypt/acme.json"


def generate_secret() -> str:
    return secrets.token_urlsafe(32)


def _strip_scheme(url: str) -> str:
    for prefix in ("https://", "http://"):
        if url.startswith(prefix):
            return url[len(prefix):]
    return url


class ConfigFiles:
    """Provisioning files under `workdir`: config/, config/traefik/, docker-compose.yml."""

    def __init__(self, workdir: Path) -> None:
        self.workdir = Path(workdir)

    @property
    def config_dir(self) -> Path:
        return self.workdir / CONFIG_DIR

    @property
    def app_config_path(self) -> Path:
        return self.config_dir / APP_CONFIG

    @property
    def traefik_config_path(self) -> Path:
        return self.config_dir / TRAEFIK_DIR / TRAEFIK_CONFIG

    @property
    def dynamic_config_path(self) -> Path:
        return self.config_dir / TRAEFIK_DIR / DYNAMIC_CONFIG

    @property
    def compose_path(self) -> Path:
        return self.workdir / COMPOSE_FILE

    # -- Read --------------------------------------------------------------

    def exists(self) -> bool:
        return self.app_config_path.exists()

    def has_compose_file(self) -> bool:
        return self.compose_path.is_file()

    def read_yaml(self, path: Path) -> dict:
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise HostError(f"failed to read {path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def load(self) -> Optional[InstallConfig]:
        """Hydrate answers from a previous installation; None when there is none."""
        if not self.exists():
            return None
        app = self.read_yaml(self.app_config_path)
        traefik = {}
        if self.traefik_config_path.exists():
            traefik = self.read_yaml(self.traefik_config_path)

        config = InstallConfig()
        dashboard = _strip_scheme(str((app.get("app") or {}).get("dashboard_url", "")))
        parts = dashboard.split(".")
        if len(parts) >= 2:
            config.dashboard_domain = dashboard
            domains = app.get("domains") or {}
            base = next(
                (d.get("base_domain") for d in domains.values() if isinstance(d, dict)),
                None,
            )
            config.base_domain = base or ".".join(parts[-2:])

        acme = (
            traefik.get("certificatesResolvers", {})
            .get("letsencrypt", {})
            .get("acme", {})
        )
        config.letsencrypt_email = acme.get("email", "")

        email = app.get("email") or {}
        if email:
            config.enable_email = True
            config.smtp_host = email.get("smtp_host", "")
            config.smtp_port = parse_port(str(email.get("smtp_port", "")))
            config.smtp_user = email.get("smtp_user", "")
            config.smtp_password = email.get("smtp_pass", "")
            config.no_reply_email = email.get("no_reply", "")

        config.hybrid_mode = False
        config.container_type = ContainerType.DOCKER
        log.info("Loaded existing configuration for %s", config.dashboard_domain or "(unknown)")
        return config

    # -- Write -------------------------------------------------------------

    def write_yaml(self, path: Path, data: dict, mode: int = 0o600) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        os.chmod(path, mode)
        log.info("Wrote %s", path)

    def write(self, config: InstallConfig) -> None:
        try:
            self.write_yaml(self.app_config_path, app_config(config))
            self.write_yaml(self.traefik_config_path, traefik_config(config), 0o644)
            if not config.hybrid_mode:
                self.write_yaml(self.dynamic_config_path, dynamic_config(config), 0o644)
            (self.config_dir / "letsencrypt").mkdir(parents=True, exist_ok=True)
            self.write_yaml(self.compose_path, compose_file(config), 0o644)
        except OSError as e:
            raise HostError(str(e)) from e

    def write_compose(self, compose: dict) -> None:
        try:
            self.write_yaml(self.compose_path, compose, 0o644)
        except OSError as e:
            raise HostError(str(e)) from e

    # -- Backup ------------------------------------------------------------

    def backup(self) -> Path:
        if not self.config_dir.is_dir():
            raise HostError(f"{self.config_dir} does not exist")
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        base = self.workdir / f"config_backup_{stamp}"
        try:
            archive = shutil.make_archive(
                str(base), "gztar", root_dir=self.workdir, base_dir=CONFIG_DIR
            )
        except OSError as e:
            raise HostError(f"backup failed: {e}") from e
        log.info("Backed up %s -> %s", self.config_dir, archive)
        return Path(archive)


# -- Documents -------------------------------------------------------------

def app_config(config: InstallConfig) -> dict:
    doc: dict = {
        "app": {
            "dashboard_url": f"https://{config.dashboard_domain}",
            "log_level": "info",
        },
    }
    if not config.hybrid_mode:
        doc["domains"] = {
            "domain1": {
                "base_domain": config.base_domain,
                "cert_resolver": "letsencrypt",
            }
        }
    doc["server"] = {"secret": config.secret}
    if config.install_gerbil:
        doc["gerbil"] = {
            "start_port": 51820,
            "base_endpoint": config.dashboard_domain,
        }
    doc["flags"] = {
        "require_email_verification": config.enable_email,
        "disable_signup_without_invite": True,
        "disable_user_create_org": False,
        "allow_raw_resources": True,
    }
    if config.enable_email:
        doc["email"] = {
            "smtp_host": config.smtp_host,
            "smtp_port": config.smtp_port,
            "smtp_user": config.smtp_user,
            "smtp_pass": config.smtp_password,
            "no_reply": config.no_reply_email,
        }
    return doc


def traefik_config(config: InstallConfig) -> dict:
    doc: dict = {
        "api": {"insecure": True, "dashboard": True},
        "providers": {
            "http": {
                "endpoint": "http://pangolin:3001/api/v1/traefik-config",
                "pollInterval": "5s",
            },
            "file": {"filename": "/etc/traefik/dynamic_config.yml"},
        },
        "experimental": {
            "plugins": {
                "badger": {
                    "moduleName": "github.com/fosrl/badger",
                    "version": config.versions.badger,
                }
            }
        },
        "log": {"level": "INFO", "format": "common"},
        "entryPoints": {
            "web": {"address": ":80"},
            "websecure": {
                "address": ":443",
                "transport": {"respondingTimeouts": {"readTimeout": "30m"}},
                "http": {"tls": {"certResolver": "letsencrypt"}},
            },
        },
        "serversTransport": {"insecureSkipVerify": True},
    }
    if not config.hybrid_mode:
        doc["certificatesResolvers"] = {
            "letsencrypt": {
                "acme": {
                    "httpChallenge": {"entryPoint": "web"},
                    "email": config.letsencrypt_email,
                    "storage": LETSENCRYPT_STORAGE,
                    "caServer": "https://acme-v02.api.letsencrypt.org/directory",
                }
            }
        }
    return doc


def dynamic_config(config: InstallConfig) -> dict:
    host = f"Host(`{config.dashboard_domain}`)"
    tls = {"certResolver": "letsencrypt"}
    return {
        "http": {
            "middlewares": {
                "redirect-to-https": {"redirectScheme": {"scheme": "https"}},
            },
            "routers": {
                "main-app-router-redirect": {
                    "rule": host,
                    "service": "next-service",
                    "entryPoints": ["web"],
                    "middlewares": ["redirect-to-https"],
                },
                "next-router": {
                    "rule": f"{host} && !PathPrefix(`/api/v1`)",
                    "service": "next-service",
                    "entryPoints": ["websecure"],
                    "tls": tls,
                },
                "api-router": {
                    "rule": f"{host} && PathPrefix(`/api/v1`)",
                    "service": "api-service",
                    "entryPoints": ["websecure"],
                    "tls": tls,
                },
                "ws-router": {
                    "rule": host,
                    "service": "api-service",
                    "entryPoints": ["websecure"],
                    "tls": tls,
                },
            },
            "services": {
                "next-service": {"loadBalancer": {"servers": [{"url": "http://pangolin:3002"}]}},
                "api-service": {"loadBalancer": {"servers": [{"url": "http://pangolin:3000"}]}},
            },
        }
    }


def compose_file(config: InstallConfig) -> dict:
    versions = config.versions
    services: dict = {}
    healthy = {}

    if not config.hybrid_mode:
        services["pangolin"] = {
            "image": f"fosrl/pangolin:{versions.pangolin}",
            "container_name": "pangolin",
            "restart": "unless-stopped",
            "volumes": ["./config:/app/config"],
            "healthcheck": {
                "test": ["CMD", "curl", "-f", "http://localhost:3001/api/v1/"],
                "interval": "3s",
                "timeout": "3s",
                "retries": 15,
            },
        }
        healthy = {"depends_on": {"pangolin": {"condition": "service_healthy"}}}

    traefik: dict = {
        "image": f"traefik:{versions.traefik}",
        "container_name": "traefik",
        "restart": "unless-stopped",
        **healthy,
        "command": ["--configFile=/etc/traefik/traefik_config.yml"],
        "volumes": [
            "./config/traefik:/etc/traefik:ro",
            "./config/letsencrypt:/letsencrypt",
        ],
    }

    if config.install_gerbil:
        services["gerbil"] = {
            "image": f"fosrl/gerbil:{versions.gerbil}",
            "container_name": "gerbil",
            "restart": "unless-stopped",
            **healthy,
            "command": [
                "--reachableAt=http://gerbil:3003",
                "--generateAndSaveKeyTo=/var/config/key",
                "--remoteConfig=http://pangolin:3001/api/v1/gerbil/get-config",
                "--reportBandwidthTo=http://pangolin:3001/api/v1/gerbil/receive-bandwidth",
            ],
            "volumes": ["./config/:/var/config"],
            "cap_add": ["NET_ADMIN", "SYS_MODULE"],
            "ports": ["51820:51820/udp", "21820:21820/udp", "443:443", "80:80"],
        }
        traefik["network_mode"] = "service:gerbil"
    else:
        traefik["ports"] = ["443:443", "80:80"]

    services["traefik"] = traefik
    return {
        "name": "pangolin",
        "services": services,
        "networks": {
            "default": {
                "driver": "bridge",
                "name": "pangolin",
                "enable_ipv6": config.enable_ipv6,
            }
        },
    }
