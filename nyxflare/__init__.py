"""nyxflare - Terminal UI for Cloudflare DNS records across accounts."""

__version__ = "0.1.0"
