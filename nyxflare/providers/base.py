"""Abstract data provider interface.

Every component above this layer talks to a :class:`DataProvider` and
never to a concrete variant.  The live Cloudflare provider and the
offline mock are chosen once at startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from nyxflare.models import Account, Record, RecordDraft, Zone


class RemoteError(Exception):
    """A provider call failed on the remote side (or never reached it)."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"


class DataProvider(ABC):
    """Capability set shared by the live and offline providers."""

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """Return the accounts this provider can act for."""

    @abstractmethod
    def list_zones(self, account: Account) -> list[Zone]:
        """Return all zones visible to *account*."""

    @abstractmethod
    def list_records(self, zone: Zone, account: Account) -> list[Record]:
        """Return all DNS records in *zone*."""

    @abstractmethod
    def create_record(self, zone: Zone, account: Account, draft: RecordDraft) -> Record:
        """Create a record and return it with its provider-assigned id."""

    @abstractmethod
    def update_record(
        self, zone: Zone, account: Account, record_id: str, draft: RecordDraft,
    ) -> Record:
        """Replace the record *record_id* with *draft*."""

    @abstractmethod
    def delete_record(self, zone: Zone, account: Account, record_id: str) -> None:
        """Delete the record *record_id*."""
