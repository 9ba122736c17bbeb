# provision/flows.py
"""
The step sequences the installer runs.

Each step receives the configuration snapshot taken when the flow was
launched. Collaborator errors are caught here and turned into FAILED lines,
so nothing raised by the host layer reaches the wizard controller.
"""
from __future__ import annotations
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List

from state import ContainerType, InstallConfig
from host.crowdsec import CrowdSecInstaller
from host.errors import HostError
from host.files import ConfigFiles, generate_secret
from host.network import resolve_versions
from host.runtime import ContainerRuntime
from provision.orchestrator import Step, StepResult

HOST_ERRORS = (HostError, OSError, subprocess.SubprocessError)

REVIEW_HINTS = [
    "",
    "📋 Review the logs above for any errors or warnings.",
    "🔍 Use ↑↓ arrows to scroll through the installation output.",
    "✨ Press Enter to continue, or Ctrl+C to exit when you're ready.",
]


class FlowKind(str, Enum):
    PRIMARY_INSTALL = "primary_install"
    CONFIG_ONLY = "config_only"
    CONFIG_THEN_BRANCH = "config_then_branch"
    SECURITY_AGENT = "security_agent"

    @property
    def advances_on_success(self) -> bool:
        """Whether the wizard moves on by itself once the flow completes."""
        return self is FlowKind.CONFIG_THEN_BRANCH


@dataclass
class HostServices:
    files: ConfigFiles
    runtime: ContainerRuntime
    crowdsec: CrowdSecInstaller
    generate_secret: Callable[[], str] = generate_secret
    resolve_versions: Callable[[InstallConfig], None] = resolve_versions

    @classmethod
    def for_workdir(cls, workdir: Path) -> "HostServices":
        files = ConfigFiles(workdir)
        runtime = ContainerRuntime(workdir)
        return cls(files=files, runtime=runtime, crowdsec=CrowdSecInstaller(files, runtime))


def _runtime_name(kind: ContainerType) -> str:
    return "Podman" if kind is ContainerType.PODMAN else "Docker"


def _needs_install(services: HostServices, kind: ContainerType) -> bool:
    # Installing a runtime is only automated on Linux.
    return sys.platform.startswith("linux") and not services.runtime.is_installed(kind)


def _info(text: str) -> Step:
    return Step(label=text or "Finishing", run=lambda config: StepResult.ok(text))


def _hints() -> List[Step]:
    return [_info(line) for line in REVIEW_HINTS]


# -- Shared steps -------------------------------------------------------------

def _prepare(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        services.resolve_versions(config)
        config.secret = services.generate_secret()
        return StepResult.ok("✓ Configuration loaded and secret generated")
    return Step("Preparing configuration", run)


def _write_files(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        try:
            services.files.write(config)
        except HOST_ERRORS as e:
            return StepResult.failed(f"❌ Config error: {e}")
        return StepResult.ok("✓ Configuration files created")
    return Step("Writing configuration files", run)


# -- Primary install ------------------------------------------------------------

def _ensure_runtime_installed(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        kind = config.container_type
        if not _needs_install(services, kind):
            return StepResult.ok("✓ Container runtime ready")
        try:
            services.runtime.install(kind)
        except HOST_ERRORS as e:
            return StepResult.failed(f"❌ {_runtime_name(kind)} installation failed: {e}")
        return StepResult.ok(f"✓ {_runtime_name(kind)} installed")
    return Step("Checking container runtime", run)


def _ensure_service_started(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        kind = config.container_type
        if services.runtime.is_live(kind):
            return StepResult.ok("✓ Container runtime ready")
        try:
            services.runtime.start_service(kind)
        except HOST_ERRORS as e:
            return StepResult.warning(f"⚠️ {_runtime_name(kind)} service start error: {e}")
        return StepResult.ok(f"✓ {_runtime_name(kind)} service started")
    return Step("Starting container service", run)


def _wait_for_runtime(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        kind = config.container_type
        if services.runtime.wait_until_live(kind):
            return StepResult.ok(f"✓ {_runtime_name(kind)} is running!")
        return StepResult.warning(f"⚠️ {_runtime_name(kind)} may not be running yet")
    return Step("Waiting for container runtime", run)


def _check_compose_tool(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        try:
            version = services.runtime.compose_version(config.container_type)
        except HOST_ERRORS as e:
            return StepResult.failed(f"❌ compose error: {e}")
        return StepResult.ok(f"✓ compose available: {version}")
    return Step("Checking compose tool", run)


def _check_compose_file(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        if not services.files.has_compose_file():
            return StepResult.failed("❌ docker-compose.yml not found")
        return StepResult.ok("✓ docker-compose.yml found")
    return Step("Locating docker-compose.yml", run)


def _pull_images(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        output, ok = services.runtime.pull_images(config.container_type)
        if not ok:
            return StepResult.failed(f"❌ Image pull failed\nOutput: {output}")
        return StepResult.ok(f"✅ Images pulled successfully\nOutput: {output}")
    return Step("🚢 Pulling container images", run)


def _start_containers(services: HostServices) -> Step:
    def run(config: InstallConfig) -> StepResult:
        output, ok = services.runtime.start_containers(config.container_type)
        if not ok:
            return StepResult.failed(f"❌ Container start failed\nOutput: {output}")
        return StepResult.ok(f"✅ Containers started successfully\nOutput: {output}")
    return Step("🚀 Starting containers", run)


def primary_install(services: HostServices) -> List[Step]:
    return [
        _prepare(services),
        _write_files(services),
        _ensure_runtime_installed(services),
        _ensure_service_started(services),
        _wait_for_runtime(services),
        _check_compose_tool(services),
        _check_compose_file(services),
        _pull_images(services),
        _start_containers(services),
        Step("Finishing", lambda config: StepResult.complete(
            "🎉 Installation completed successfully!"
        )),
        *_hints(),
    ]


# -- Config files -------------------------------------------------------------

def config_only(services: HostServices) -> List[Step]:
    return [
        _prepare(services),
        _write_files(services),
        Step("Finishing", lambda config: StepResult.complete(
            "🎉 Configuration files created successfully!"
        )),
        _info(""),
        _info("📋 You can now install containers manually or proceed to CrowdSec setup."),
    ]


def config_then_branch(services: HostServices) -> List[Step]:
    def branch(config: InstallConfig) -> StepResult:
        if config.install_containers:
            return StepResult.complete("🚀 Proceeding with container installation...")
        return StepResult.complete("⏭️ Skipping container installation...")
    return [
        _prepare(services),
        _write_files(services),
        Step("Continuing", branch),
    ]


# -- CrowdSec -----------------------------------------------------------------

def security_agent(services: HostServices) -> List[Step]:
    def stop(config: InstallConfig) -> StepResult:
        try:
            services.runtime.stop_containers(config.container_type)
        except HOST_ERRORS as e:
            return StepResult.failed(f"❌ Failed to stop containers: {e}")
        return StepResult.ok("✓ Containers stopped successfully")

    def backup(config: InstallConfig) -> StepResult:
        try:
            archive = services.files.backup()
        except HOST_ERRORS as e:
            return StepResult.failed(f"❌ Backup failed: {e}")
        return StepResult.ok(f"✓ Configuration backed up to {archive.name}")

    def install(config: InstallConfig) -> StepResult:
        try:
            services.crowdsec.install(config)
        except HOST_ERRORS as e:
            return StepResult.failed(f"❌ CrowdSec installation failed: {e}")
        return StepResult.ok("✅ CrowdSec installed successfully!")

    return [
        Step("🛑 Stopping existing containers", stop),
        Step("💾 Backing up configuration", backup),
        Step("🛡️ Installing CrowdSec", install),
        Step("Finishing", lambda config: StepResult.complete(
            "🎉 CrowdSec installation completed!"
        )),
        *_hints(),
    ]


FLOWS = {
    FlowKind.PRIMARY_INSTALL: primary_install,
    FlowKind.CONFIG_ONLY: config_only,
    FlowKind.CONFIG_THEN_BRANCH: config_then_branch,
    FlowKind.SECURITY_AGENT: security_agent,
}


def build_steps(kind: FlowKind, services: HostServices) -> List[Step]:
    return FLOWS[kind](services)
