# validators.py
from __future__ import annotations
import re
from typing import Tuple

from state import DEFAULT_SMTP_PORT, DEFAULT_SUBDOMAIN

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_required(label: str, value: str) -> Tuple[bool, str]:
    if not value.strip():
        return False, f"{label} is required"
    return True, ""


def validate_email(address: str) -> Tuple[bool, str]:
    if not _EMAIL_RE.match(address.strip()):
        return False, f"'{address}' is not a valid email address."
    return True, ""


def parse_port(raw: str, default: int = DEFAULT_SMTP_PORT) -> int:
    """Parse a TCP port; empty, non-numeric or out-of-range input gives `default`."""
    try:
        port = int(raw.strip())
    except ValueError:
        return default
    if not (1 <= port <= 65535):
        return default
    return port


def compose_dashboard_domain(base_domain: str, subdomain: str) -> str:
    """'example.com', '' -> 'pangolin.example.com'."""
    subdomain = subdomain.strip() or DEFAULT_SUBDOMAIN
    return f"{subdomain}.{base_domain.strip()}"


def split_subdomain(dashboard_domain: str, base_domain: str) -> str:
    """Inverse of compose_dashboard_domain; '' when the dashboard is not under base."""
    if not dashboard_domain or not base_domain:
        return ""
    suffix = "." + base_domain
    if dashboard_domain.endswith(suffix) and len(dashboard_domain) > len(suffix):
        return dashboard_domain[: -len(suffix)]
    return ""
