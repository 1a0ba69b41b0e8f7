"""Deterministic offline provider.

Generates fixture zones from the account name and seeds three records
per zone the first time the zone is listed.  Fixtures are kept per account,
so two accounts whose names share a slug never see each other's changes.  Mutations change the
fixture, so later listings reflect them for the rest of the process.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from nyxflare.models import Account, Record, RecordDraft, Zone
from nyxflare.providers.base import DataProvider, RemoteError

logger = logging.getLogger(__name__)


def account_slug(account: Account) -> str:
    return account.name.replace(" ", "").lower()


class MockProvider(DataProvider):
    """In-memory stand-in for Cloudflare, selected by the offline toggle."""

    def __init__(self, accounts: Optional[list[Account]] = None, latency: float = 0.0):
        self._accounts = accounts if accounts is not None else []
        self._latency = max(latency, 0.0)
        self._records: dict[tuple[str, str], list[Record]] = {}
        self._next_id: dict[tuple[str, str], int] = {}
        # Slots run in separate worker threads and share the fixture.
        self._lock = threading.Lock()

    def _simulate_latency(self) -> None:
        if self._latency:
            time.sleep(self._latency)

    def _ensure_zone(self, account: Account, zone: Zone) -> list[Record]:
        key = (account.name, zone.id)
        if key not in self._records:
            self._records[key] = [
                Record(
                    id=f"{zone.id}-a",
                    name=f"api.{zone.name}",
                    type="A",
                    content="203.0.113.10",
                    ttl=300,
                    proxied=True,
                ),
                Record(
                    id=f"{zone.id}-b",
                    name=f"cdn.{zone.name}",
                    type="CNAME",
                    content="edge.service.net",
                    ttl=120,
                    proxied=True,
                ),
                Record(
                    id=f"{zone.id}-c",
                    name=f"mail.{zone.name}",
                    type="MX",
                    content=f"mail.{zone.name}",
                    ttl=3600,
                    proxied=False,
                ),
            ]
            self._next_id[key] = len(self._records[key])
        return self._records[key]

    def _index_of(self, records: list[Record], zone: Zone, record_id: str) -> int:
        for idx, rec in enumerate(records):
            if rec.id == record_id:
                return idx
        raise RemoteError(404, f"Record {record_id} not found in {zone.name}")

    def list_accounts(self) -> list[Account]:
        self._simulate_latency()
        return list(self._accounts)

    def list_zones(self, account: Account) -> list[Zone]:
        self._simulate_latency()
        base = account_slug(account)
        return [
            Zone(id=f"{base}-01", name=f"{base}.example.com"),
            Zone(id=f"{base}-02", name=f"{base}.services.io"),
        ]

    def list_records(self, zone: Zone, account: Account) -> list[Record]:
        self._simulate_latency()
        with self._lock:
            return list(self._ensure_zone(account, zone))

    def create_record(self, zone: Zone, account: Account, draft: RecordDraft) -> Record:
        self._simulate_latency()
        with self._lock:
            records = self._ensure_zone(account, zone)
            key = (account.name, zone.id)
            self._next_id[key] += 1
            record = draft.to_record(f"{zone.id}-{self._next_id[key]}")
            records.append(record)
        logger.debug("Offline create %s in %s", record.id, zone.name)
        return record

    def update_record(
        self, zone: Zone, account: Account, record_id: str, draft: RecordDraft,
    ) -> Record:
        self._simulate_latency()
        with self._lock:
            records = self._ensure_zone(account, zone)
            idx = self._index_of(records, zone, record_id)
            record = draft.to_record(record_id)
            records[idx] = record
        return record

    def delete_record(self, zone: Zone, account: Account, record_id: str) -> None:
        self._simulate_latency()
        with self._lock:
            records = self._ensure_zone(account, zone)
            del records[self._index_of(records, zone, record_id)]
