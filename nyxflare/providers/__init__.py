"""Data providers for nyxflare."""

from __future__ import annotations

from nyxflare.models import Account
from nyxflare.providers.base import DataProvider, RemoteError
from nyxflare.providers.cloudflare import CloudflareProvider
from nyxflare.providers.mock import MockProvider


def create_provider(accounts: list[Account], offline: bool = False, latency: float = 0.0) -> DataProvider:
    """Pick the provider variant once at startup."""
    if offline:
        return MockProvider(accounts, latency=latency)
    return CloudflareProvider(accounts)


__all__ = [
    "CloudflareProvider",
    "DataProvider",
    "MockProvider",
    "RemoteError",
    "create_provider",
]
