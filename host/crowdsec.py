# host/crowdsec.py
from __future__ import annotations

from state import InstallConfig
from host.errors import HostError
from host.files import ConfigFiles
from host.runtime import ContainerRuntime
from logger import log

CROWDSEC_IMAGE = "crowdsecurity/crowdsec:latest"
BOUNCER_MODULE = "github.com/maxlerebourg/crowdsec-bouncer-traefik-plugin"
BOUNCER_VERSION = "v1.4.2"
TRAEFIK_ACCESS_LOG = "/var/log/traefik/access.log"

ACQUIS = {
    "poll_without_inotify": False,
    "filenames": ["/var/log/traefik/*.log"],
    "labels": {"type": "traefik"},
}


def crowdsec_service() -> dict:
    return {
        "image": CROWDSEC_IMAGE,
        "container_name": "crowdsec",
        "environment": {
            "GID": "1000",
            "COLLECTIONS": (
                "crowdsecurity/traefik crowdsecurity/appsec-virtual-patching "
                "crowdsecurity/appsec-generic-rules"
            ),
            "ENROLL_INSTANCE_NAME": "pangolin-crowdsec",
            "PARSERS": "crowdsecurity/whitelists",
            "ENROLL_TAGS": "docker",
        },
        "healthcheck": {
            "test": ["CMD", "cscli", "capi", "status"],
            "interval": "10s",
            "timeout": "5s",
            "retries": 3,
        },
        "labels": ["traefik.enable=false"],
        "volumes": [
            "./config/crowdsec:/etc/crowdsec",
            "./config/crowdsec/db:/var/lib/crowdsec/data",
            "./config/traefik/logs:/var/log/traefik",
        ],
        "ports": ["6060:6060"],
        "restart": "unless-stopped",
        "command": "-t",
    }


class CrowdSecInstaller:
    """Adds a minimal CrowdSec deployment next to an existing installation."""

    def __init__(self, files: ConfigFiles, runtime: ContainerRuntime) -> None:
        self.files = files
        self.runtime = runtime

    def _add_service(self) -> None:
        if not self.files.has_compose_file():
            raise HostError(f"{self.files.compose_path} not found")
        compose = self.files.read_yaml(self.files.compose_path)
        services = compose.setdefault("services", {})
        services["crowdsec"] = crowdsec_service()
        traefik = services.get("traefik")
        if traefik is not None:
            volumes = traefik.setdefault("volumes", [])
            if "./config/traefik/logs:/var/log/traefik" not in volumes:
                volumes.append("./config/traefik/logs:/var/log/traefik")
        self.files.write_compose(compose)

    def _enable_bouncer(self) -> None:
        path = self.files.traefik_config_path
        traefik = self.files.read_yaml(path) if path.exists() else {}
        plugins = traefik.setdefault("experimental", {}).setdefault("plugins", {})
        plugins["crowdsec"] = {"moduleName": BOUNCER_MODULE, "version": BOUNCER_VERSION}
        traefik["accessLog"] = {"filePath": TRAEFIK_ACCESS_LOG, "format": "json"}
        self.files.write_yaml(path, traefik, 0o644)

    def install(self, config: InstallConfig) -> None:
        try:
            self.files.write_yaml(
                self.files.config_dir / "crowdsec" / "acquis.yaml", ACQUIS, 0o644
            )
            (self.files.config_dir / "traefik" / "logs").mkdir(parents=True, exist_ok=True)
            self._enable_bouncer()
        except OSError as e:
            raise HostError(str(e)) from e
        self._add_service()

        output, ok = self.runtime.start_containers(config.container_type)
        if not ok:
            raise HostError(f"containers did not start: {output}")
        log.info("CrowdSec installed for %s", config.dashboard_domain)
