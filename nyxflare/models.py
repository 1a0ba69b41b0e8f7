"""Data models for nyxflare."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


RECORD_TYPES = ["A", "AAAA", "CNAME", "TXT", "MX", "NS", "SRV", "CAA", "PTR"]
PROXY_ELIGIBLE_TYPES = {"A", "AAAA", "CNAME"}

# Cloudflare treats a TTL of 1 as "automatic".
AUTO_TTL = 1
AUTO_TTL_WORDS = ("auto", "automatic")


class AuthMode(Enum):
    TOKEN = "token"
    GLOBAL_KEY = "global_key"

    @classmethod
    def from_str(cls, s: str) -> "AuthMode":
        try:
            return cls(str(s).lower())
        except ValueError:
            return cls.TOKEN


class Focus(Enum):
    ACCOUNTS = "accounts"
    ZONES = "zones"
    RECORDS = "records"


class Slot(Enum):
    ACCOUNTS = "accounts"
    ZONES = "zones"
    RECORDS = "records"
    MUTATION = "mutation"


class Severity(Enum):
    INFO = "info"
    ERROR = "error"


@dataclass
class Account:
    name: str
    api_token: str = field(repr=False)
    email: Optional[str] = None
    account_id: Optional[str] = None
    auth_mode: AuthMode = AuthMode.TOKEN

    def to_dict(self) -> dict:
        data = {"name": self.name, "api_token": self.api_token}
        if self.email:
            data["email"] = self.email
        if self.account_id:
            data["account_id"] = self.account_id
        if self.auth_mode is not AuthMode.TOKEN:
            data["auth_mode"] = self.auth_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        return cls(
            name=str(data.get("name", "")).strip(),
            api_token=str(data.get("api_token", "")).strip(),
            email=str(data["email"]).strip() if data.get("email") else None,
            account_id=str(data["account_id"]).strip() if data.get("account_id") else None,
            auth_mode=AuthMode.from_str(data.get("auth_mode", "token")),
        )


@dataclass(frozen=True)
class Zone:
    id: str
    name: str


@dataclass(frozen=True)
class Record:
    id: str
    name: str
    type: str
    content: str
    ttl: int = AUTO_TTL
    proxied: bool = False

    @property
    def ttl_str(self) -> str:
        return "auto" if self.ttl == AUTO_TTL else str(self.ttl)

    @property
    def is_proxy_eligible(self) -> bool:
        return self.type in PROXY_ELIGIBLE_TYPES

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match over the displayed fields."""
        needle = needle.lower()
        return (
            needle in self.name.lower()
            or needle in self.type.lower()
            or needle in self.content.lower()
        )


@dataclass(frozen=True)
class RecordDraft:
    """Validated field set sent to create or update a record."""
    name: str
    type: str
    content: str
    ttl: int = AUTO_TTL
    proxied: bool = False

    def to_record(self, record_id: str) -> Record:
        return Record(
            id=record_id,
            name=self.name,
            type=self.type,
            content=self.content,
            ttl=self.ttl,
            proxied=self.proxied,
        )


@dataclass(frozen=True)
class FilterState:
    text: str = ""
    is_active: bool = False

    @property
    def needle(self) -> str:
        return self.text.strip() if self.is_active else ""


@dataclass(frozen=True)
class StatusMessage:
    text: str = ""
    severity: Severity = Severity.INFO

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR
