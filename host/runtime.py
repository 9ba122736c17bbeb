# host/runtime.py
from __future__ import annotations
import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Tuple

from state import ContainerType
from host.errors import HostError
from logger import log

COMPOSE_FILE = "docker-compose.yml"
DOCKER_INSTALL_SCRIPT = "https://get.docker.com"
LIVE_POLL_ATTEMPTS = 5
LIVE_POLL_INTERVAL = 2.0


class ContainerRuntime:
    """Docker / Podman operations run against the compose file in `workdir`."""

    def __init__(self, workdir: Path, timeout: int = 900) -> None:
        self.workdir = Path(workdir)
        self.timeout = timeout

    # -- Helpers -----------------------------------------------------------

    def _run(self, argv: List[str], timeout: Optional[int] = None) -> subprocess.CompletedProcess:
        log.info("Running: %s", " ".join(argv))
        return subprocess.run(
            argv,
            cwd=self.workdir,
            capture_output=True,
            text=True,
            timeout=timeout or self.timeout,
        )

    def _succeeds(self, argv: List[str]) -> bool:
        try:
            return self._run(argv, timeout=30).returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    @staticmethod
    def _output(proc: subprocess.CompletedProcess) -> str:
        text = ((proc.stdout or "") + (proc.stderr or "")).strip()
        return text or "(no output)"

    def compose_command(self, kind: ContainerType) -> List[str]:
        """`podman-compose`, `docker compose`, or legacy `docker-compose`."""
        if kind is ContainerType.PODMAN:
            return ["podman-compose"]
        if self._succeeds(["docker", "compose", "version"]):
            return ["docker", "compose"]
        return ["docker-compose"]

    # -- Detection ---------------------------------------------------------

    def is_installed(self, kind: ContainerType) -> bool:
        return shutil.which(kind.value) is not None

    def is_live(self, kind: ContainerType) -> bool:
        return self._succeeds([kind.value, "info"])

    def wait_until_live(
        self,
        kind: ContainerType,
        attempts: int = LIVE_POLL_ATTEMPTS,
        interval: float = LIVE_POLL_INTERVAL,
    ) -> bool:
        for i in range(attempts):
            if self.is_live(kind):
                return True
            if i < attempts - 1:
                time.sleep(interval)
        return False

    def compose_version(self, kind: ContainerType) -> str:
        cmd = self.compose_command(kind)
        argv = cmd + (["version"] if cmd == ["docker", "compose"] else ["--version"])
        try:
            proc = self._run(argv, timeout=30)
        except (OSError, subprocess.SubprocessError) as e:
            raise HostError(f"{argv[0]} not available: {e}") from e
        if proc.returncode != 0:
            raise HostError(self._output(proc))
        return self._output(proc)

    # -- Install / service -------------------------------------------------

    def install(self, kind: ContainerType) -> None:
        if kind is ContainerType.DOCKER:
            argv = ["sh", "-c", f"curl -fsSL {DOCKER_INSTALL_SCRIPT} | sh"]
        elif shutil.which("apt-get"):
            argv = ["apt-get", "install", "-y", "podman", "podman-compose"]
        elif shutil.which("dnf"):
            argv = ["dnf", "install", "-y", "podman", "podman-compose"]
        else:
            raise HostError("no supported package manager found to install podman")
        try:
            proc = self._run(argv)
        except (OSError, subprocess.SubprocessError) as e:
            raise HostError(str(e)) from e
        if proc.returncode != 0:
            raise HostError(self._output(proc))
        log.info("Installed %s", kind.value)

    def start_service(self, kind: ContainerType) -> None:
        unit = "docker" if kind is ContainerType.DOCKER else "podman.socket"
        try:
            proc = self._run(["systemctl", "enable", "--now", unit], timeout=120)
        except (OSError, subprocess.SubprocessError) as e:
            raise HostError(str(e)) from e
        if proc.returncode != 0:
            raise HostError(self._output(proc))
        log.info("Started service %s", unit)

    # -- Compose -----------------------------------------------------------

    def _compose(self, kind: ContainerType, *args: str) -> Tuple[str, bool]:
        argv = self.compose_command(kind) + ["-f", COMPOSE_FILE, *args]
        try:
            proc = self._run(argv)
        except (OSError, subprocess.SubprocessError) as e:
            return str(e), False
        return self._output(proc), proc.returncode == 0

    def pull_images(self, kind: ContainerType) -> Tuple[str, bool]:
        return self._compose(kind, "pull")

    def start_containers(self, kind: ContainerType) -> Tuple[str, bool]:
        return self._compose(kind, "up", "-d")

    def stop_containers(self, kind: ContainerType) -> None:
        output, ok = self._compose(kind, "down")
        if not ok:
            raise HostError(output)
