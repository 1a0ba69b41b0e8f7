"""nyxflare TUI screens."""

from nyxflare.screens.dns_screen import DNSScreen

__all__ = [
    "DNSScreen",
]
