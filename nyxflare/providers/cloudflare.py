"""Live provider backed by the Cloudflare v4 API."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from nyxflare.cloudflare_client import CloudflareClient, CloudflareError
from nyxflare.models import AUTO_TTL, Account, AuthMode, Record, RecordDraft, Zone
from nyxflare.providers.base import DataProvider, RemoteError

logger = logging.getLogger(__name__)


def record_from_api(data: dict) -> Record:
    """Build a :class:`Record` from a Cloudflare ``dns_record`` object."""
    ttl = data.get("ttl")
    return Record(
        id=str(data.get("id", "")),
        name=str(data.get("name", "")),
        type=str(data.get("type", "")),
        content=str(data.get("content", "")),
        ttl=int(ttl) if ttl else AUTO_TTL,
        proxied=bool(data.get("proxied", False)),
    )


def draft_to_api(draft: RecordDraft) -> dict:
    return {
        "type": draft.type,
        "name": draft.name,
        "content": draft.content,
        "ttl": draft.ttl,
        "proxied": draft.proxied,
    }


class CloudflareProvider(DataProvider):
    """One Cloudflare round trip per call.

    Accounts come from the local account store; everything else goes to
    the API using the credentials of the account passed in.
    """

    def __init__(
        self,
        accounts: Optional[list[Account]] = None,
        base_url: Optional[str] = None,
        client_factory: Optional[Callable[[Account], CloudflareClient]] = None,
    ):
        self._accounts = accounts if accounts is not None else []
        self._base_url = base_url
        self._client_factory = client_factory or self._default_client

    def _default_client(self, account: Account) -> CloudflareClient:
        return CloudflareClient(
            api_token=account.api_token,
            email=account.email,
            global_key=account.auth_mode is AuthMode.GLOBAL_KEY,
            base_url=self._base_url,
        )

    def _client(self, account: Account) -> CloudflareClient:
        try:
            return self._client_factory(account)
        except CloudflareError as e:
            raise RemoteError(e.status, f"{account.name}: {e.message}") from e

    def list_accounts(self) -> list[Account]:
        return list(self._accounts)

    def list_zones(self, account: Account) -> list[Zone]:
        client = self._client(account)
        try:
            zones = client.list_zones(account_id=account.account_id)
        except CloudflareError as e:
            logger.warning("Listing zones for %s failed: %s", account.name, e)
            raise RemoteError(e.status, e.message) from e
        return [Zone(id=str(z["id"]), name=str(z.get("name", ""))) for z in zones]

    def list_records(self, zone: Zone, account: Account) -> list[Record]:
        client = self._client(account)
        try:
            records = client.list_records(zone.id)
        except CloudflareError as e:
            logger.warning("Listing records for %s failed: %s", zone.name, e)
            raise RemoteError(e.status, e.message) from e
        return [record_from_api(r) for r in records]

    def create_record(self, zone: Zone, account: Account, draft: RecordDraft) -> Record:
        client = self._client(account)
        try:
            created = client.create_record(zone.id, draft_to_api(draft))
        except CloudflareError as e:
            raise RemoteError(e.status, e.message) from e
        logger.info("Created %s %s in %s", draft.type, draft.name, zone.name)
        return record_from_api(created)

    def update_record(
        self, zone: Zone, account: Account, record_id: str, draft: RecordDraft,
    ) -> Record:
        client = self._client(account)
        try:
            updated = client.update_record(zone.id, record_id, draft_to_api(draft))
        except CloudflareError as e:
            raise RemoteError(e.status, e.message) from e
        logger.info("Updated record %s in %s", record_id, zone.name)
        return record_from_api(updated)

    def delete_record(self, zone: Zone, account: Account, record_id: str) -> None:
        client = self._client(account)
        try:
            client.delete_record(zone.id, record_id)
        except CloudflareError as e:
            raise RemoteError(e.status, e.message) from e
        logger.info("Deleted record %s in %s", record_id, zone.name)
