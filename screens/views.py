# screens/views.py
"""Text shown for each wizard screen, rendered from controller state."""
from __future__ import annotations
from rich.markup import escape

from validators import compose_dashboard_domain
from wizard.graph import ScreenID

TITLES = {
    ScreenID.WELCOME: "🦎 Pangolin Installer",
    ScreenID.HYBRID_MODE: "Installation Mode",
    ScreenID.HYBRID_CREDENTIALS: "Hybrid Credentials",
    ScreenID.DOMAIN_CONFIG: "Domain Configuration",
    ScreenID.EMAIL_CONFIG: "Email Configuration",
    ScreenID.EMAIL_INPUT: "Email Configuration",
    ScreenID.ADVANCED_CONFIG: "Advanced Configuration",
    ScreenID.CONTAINER: "Container Runtime",
    ScreenID.INSTALL_CONTAINERS: "🚀 Install Containers",
    ScreenID.INSTALL: "🦎 Installing Pangolin",
    ScreenID.CROWDSEC: "🛡️ CrowdSec Security",
    ScreenID.CROWDSEC_MANAGE: "⚙️ CrowdSec Management",
    ScreenID.CROWDSEC_INSTALL: "🛡️ Installing CrowdSec",
    ScreenID.SETUP_TOKEN: "🔑 Setup Token",
    ScreenID.COMPLETE: "🎉 Installation Complete!",
}

WELCOME_NEW = """\
Welcome to the Pangolin installer!

This installer will help you set up Pangolin on your server.

Prerequisites:
• Open TCP ports 80 and 443
• Open UDP ports 51820 and 21820
• Point your domain to this server's IP

Press [bold]Enter[/bold] to continue..."""

WELCOME_EXISTING = """\
🔄 Existing Installation Detected!

It looks like you already have Pangolin configured.
Your existing configuration values have been loaded.

You can review and update your settings, or proceed directly to installation.

Press [bold]Enter[/bold] to continue..."""

QUESTIONS = {
    ScreenID.HYBRID_MODE: "Do you want to install Pangolin as a cloud-managed (beta) node?",
    ScreenID.HYBRID_CREDENTIALS: (
        "Do you already have credentials from the dashboard?\n"
        "If not, we will create them later."
    ),
    ScreenID.EMAIL_CONFIG: "Enable email functionality (SMTP)?",
    ScreenID.EMAIL_INPUT: "Enter your SMTP server settings.",
    ScreenID.ADVANCED_CONFIG: "Is your server IPv6 capable?",
    ScreenID.CONTAINER: "Which container runtime would you like to use?",
    ScreenID.INSTALL_CONTAINERS: """\
Would you like to install and start the containers now?

This will:
• Pull the required Docker/Podman images
• Start all Pangolin services
• Make your dashboard available

You can also install containers manually later.""",
    ScreenID.CROWDSEC: """\
Would you like to install CrowdSec?

CrowdSec is a collaborative security solution that:
• Protects against brute force attacks
• Shares threat intelligence
• Provides real-time IP reputation

Note: This constitutes a minimal CrowdSec deployment. \
You'll need to configure it manually for optimal security.""",
    ScreenID.CROWDSEC_MANAGE: """\
Are you willing to manage CrowdSec configuration?

CrowdSec will add complexity to your installation and requires:
• Manual configuration adjustments
• Ongoing maintenance
• Understanding of security policies

Consult the CrowdSec documentation for detailed setup instructions.""",
    ScreenID.SETUP_TOKEN: """\
Generating setup token for first-time configuration...

This will create a secure token that allows you to:
• Complete the initial dashboard setup
• Create your first admin account
• Configure basic settings

The token is printed in the pangolin container log
([bold]docker logs pangolin[/bold]).

Press [bold]Enter[/bold] to continue...""",
}


def title(screen: ScreenID) -> str:
    return TITLES.get(screen, "")


def _welcome(controller) -> str:
    text = WELCOME_EXISTING if controller.existing_install else WELCOME_NEW
    if controller.port_warnings:
        text += "\n\n[yellow]⚠️  Port Warnings:[/yellow]\n"
        text += "\n".join(f"• {escape(w)}" for w in controller.port_warnings)
        text += "\n\nPlease close any services on ports 80/443 before proceeding."
    return text


def _domain_preview(controller) -> str:
    if controller.config.hybrid_mode or len(controller.fields) < 2:
        return "Enter the public IP address or domain of this server."
    base = controller.fields[0].value.strip()
    if not base:
        return "Enter your base domain and Let's Encrypt email."
    url = compose_dashboard_domain(base, controller.fields[1].value)
    return f"📍 Dashboard URL: [bold]https://{escape(url)}[/bold]"


def _progress(controller, what: str) -> str:
    if controller.busy:
        step = controller.install_step or f"Preparing {what}"
        return f"⏳ {escape(step)}\n\nUse ↑↓ to scroll through logs"
    if controller.flow_succeeded is False:
        return f"[red]❌ {what.capitalize()} finished with errors - Review Output[/red]"
    return f"✅ {what.capitalize()} Complete - Review Output\n\nUse ↑↓ to scroll • Enter to continue"


def body(controller) -> str:
    screen = controller.screen
    if screen is ScreenID.WELCOME:
        return _welcome(controller)
    if screen is ScreenID.DOMAIN_CONFIG:
        return _domain_preview(controller)
    if screen is ScreenID.INSTALL:
        return _progress(controller, "installation")
    if screen is ScreenID.CROWDSEC_INSTALL:
        return _progress(controller, "CrowdSec installation")
    if screen is ScreenID.INSTALL_CONTAINERS and controller.busy:
        return "⏳ Creating configuration files..."
    if screen is ScreenID.COMPLETE:
        domain = escape(controller.config.dashboard_domain)
        return (
            "Pangolin has been successfully installed!\n\n"
            f"Dashboard URL: [bold]https://{domain}[/bold]\n"
            "Next steps:\n"
            "1. Complete the initial setup at the dashboard\n"
            "2. Create your first admin account\n"
            "3. Start creating secure tunnels\n\n"
            "Thank you for using Pangolin! 🦎"
        )
    return QUESTIONS.get(screen, "")


def render(controller) -> str:
    """Plain text rendering of the whole screen (title, body, fields, error)."""
    parts = [title(controller.screen), body(controller)]
    for i, f in enumerate(controller.fields):
        marker = ">" if i == controller.focus_index else " "
        if f.is_button:
            parts.append(f"{marker} " + escape(f"[{f.label}]"))
        else:
            shown = "•" * len(f.value) if f.password else f.value
            star = " *" if f.required else ""
            parts.append(f"{marker} {escape(f.label)}{star}: {escape(shown)}")
    if controller.error:
        parts.append(f"[red]Error: {escape(controller.error)}[/red]")
    return "\n".join(parts)
