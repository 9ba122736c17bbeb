# widgets/pangolin_header.py
from __future__ import annotations
import pyfiglet
from textual.widgets import Static

_ASCII = pyfiglet.figlet_format("Pangolin", font="small")


class PangolinHeader(Static):
    """Orange ASCII-art banner shown above every wizard screen."""

    DEFAULT_CSS = """
    PangolinHeader {
        color: #F97317;
        text-style: bold;
        width: 100%;
        padding: 0 2;
    }
    """

    def __init__(self, subtitle: str = "Secure gateway to your private networks") -> None:
        super().__init__(f"{_ASCII.rstrip()}\n[italic #FFA500]{subtitle}[/]")
