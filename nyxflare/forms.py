"""Edit buffers for the record and account forms.

Validation errors are collected per field and never leave the form;
submitting is blocked while any field has an error.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from nyxflare.models import (
    AUTO_TTL,
    AUTO_TTL_WORDS,
    PROXY_ELIGIBLE_TYPES,
    RECORD_TYPES,
    Account,
    AuthMode,
    Record,
    RecordDraft,
)


class ValidationError(Exception):
    """A single field failed local validation."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------

def parse_ttl(raw: str) -> int:
    value = raw.strip().lower()
    if value in AUTO_TTL_WORDS:
        return AUTO_TTL
    try:
        ttl = int(value)
    except ValueError:
        raise ValidationError("ttl", "TTL must be a positive number or 'auto'")
    if ttl < 1:
        raise ValidationError("ttl", "TTL must be a positive number or 'auto'")
    return ttl


def normalise_type(raw: str) -> str:
    rtype = raw.strip().upper()
    if rtype not in RECORD_TYPES:
        raise ValidationError("type", f"Type must be one of {', '.join(RECORD_TYPES)}")
    return rtype


def check_content(rtype: str, raw: str) -> str:
    """Plausibility checks only; the remote side has the final say."""
    content = raw.strip()
    if not content:
        raise ValidationError("content", "Content is required")
    if rtype == "A":
        try:
            ipaddress.IPv4Address(content)
        except ValueError:
            raise ValidationError("content", "A records need an IPv4 address")
    elif rtype == "AAAA":
        try:
            ipaddress.IPv6Address(content)
        except ValueError:
            raise ValidationError("content", "AAAA records need an IPv6 address")
    elif rtype in ("CNAME", "NS", "MX") and any(c.isspace() for c in content):
        raise ValidationError("content", f"{rtype} target must be a single hostname")
    return content


# ---------------------------------------------------------------------------
# Record form
# ---------------------------------------------------------------------------

class FormMode(Enum):
    CREATING = "creating"
    EDITING = "editing"


RECORD_FIELDS = ["name", "type", "content", "ttl", "proxied"]
RECORD_FIELD_LABELS = {
    "name": "Name",
    "type": "Type",
    "content": "Content",
    "ttl": "TTL",
    "proxied": "Proxied",
}


@dataclass
class RecordForm:
    """Transient edit buffer for creating or editing one record."""
    mode: FormMode
    target_id: Optional[str] = None
    name: str = ""
    type: str = "A"
    content: str = ""
    ttl: str = "auto"
    proxied: bool = False
    field_index: int = 0
    field_errors: dict[str, str] = field(default_factory=dict)
    submitting: bool = False

    @classmethod
    def create(cls) -> "RecordForm":
        return cls(mode=FormMode.CREATING)

    @classmethod
    def edit(cls, record: Record) -> "RecordForm":
        return cls(
            mode=FormMode.EDITING,
            target_id=record.id,
            name=record.name,
            type=record.type,
            content=record.content,
            ttl=record.ttl_str,
            proxied=record.proxied,
        )

    @property
    def is_edit(self) -> bool:
        return self.mode is FormMode.EDITING

    @property
    def active_field(self) -> str:
        return RECORD_FIELDS[self.field_index]

    @property
    def on_last_field(self) -> bool:
        return self.field_index == len(RECORD_FIELDS) - 1

    @property
    def is_valid(self) -> bool:
        return not self.field_errors

    # -- cursor ----------------------------------------------------------

    def next_field(self) -> None:
        self.field_index = min(self.field_index + 1, len(RECORD_FIELDS) - 1)

    def previous_field(self) -> None:
        self.field_index = max(self.field_index - 1, 0)

    # -- editing ---------------------------------------------------------

    def set_field(self, name: str, value) -> None:
        if name == "proxied":
            self.proxied = bool(value)
        else:
            setattr(self, name, str(value))
        self.validate()

    def insert_char(self, char: str) -> None:
        name = self.active_field
        if name == "proxied":
            return
        self.set_field(name, getattr(self, name) + char)

    def backspace(self) -> None:
        name = self.active_field
        if name == "proxied":
            return
        self.set_field(name, getattr(self, name)[:-1])

    def toggle_proxied(self) -> None:
        self.set_field("proxied", not self.proxied)

    # -- validation ------------------------------------------------------

    def validate(self) -> dict[str, str]:
        """Re-check every field and refresh ``field_errors``."""
        errors: dict[str, str] = {}
        rtype: Optional[str] = None

        if not self.name.strip():
            errors["name"] = "Name is required"
        try:
            rtype = normalise_type(self.type)
        except ValidationError as e:
            errors[e.field] = e.message
        try:
            check_content(rtype or "", self.content)
        except ValidationError as e:
            errors[e.field] = e.message
        try:
            parse_ttl(self.ttl)
        except ValidationError as e:
            errors[e.field] = e.message
        if self.proxied and rtype is not None and rtype not in PROXY_ELIGIBLE_TYPES:
            errors["proxied"] = f"{rtype} records cannot be proxied"

        self.field_errors = errors
        return errors

    def build_draft(self) -> Optional[RecordDraft]:
        """Validate and return the draft, or None if submit is blocked."""
        if self.validate():
            return None
        return RecordDraft(
            name=self.name.strip(),
            type=normalise_type(self.type),
            content=self.content.strip(),
            ttl=parse_ttl(self.ttl),
            proxied=self.proxied,
        )


# ---------------------------------------------------------------------------
# Account form
# ---------------------------------------------------------------------------

ACCOUNT_FIELDS = ["name", "api_token", "email", "account_id"]
ACCOUNT_FIELD_LABELS = {
    "name": "Name",
    "api_token": "API token",
    "email": "Email",
    "account_id": "Account ID",
}


@dataclass
class AccountForm:
    """Edit buffer for the add-account flow."""
    name: str = ""
    api_token: str = ""
    email: str = ""
    account_id: str = ""
    field_index: int = 0
    field_errors: dict[str, str] = field(default_factory=dict)

    @property
    def active_field(self) -> str:
        return ACCOUNT_FIELDS[self.field_index]

    @property
    def on_last_field(self) -> bool:
        return self.field_index == len(ACCOUNT_FIELDS) - 1

    def next_field(self) -> None:
        self.field_index = min(self.field_index + 1, len(ACCOUNT_FIELDS) - 1)

    def previous_field(self) -> None:
        self.field_index = max(self.field_index - 1, 0)

    def insert_char(self, char: str) -> None:
        name = self.active_field
        setattr(self, name, getattr(self, name) + char)

    def backspace(self) -> None:
        name = self.active_field
        setattr(self, name, getattr(self, name)[:-1])

    def build_account(self, existing_names: list[str]) -> Optional[Account]:
        """Return the new account, or None with ``field_errors`` filled in."""
        errors: dict[str, str] = {}
        name = self.name.strip()
        if not name:
            errors["name"] = "Name is required"
        elif name in existing_names:
            errors["name"] = f"An account named {name} already exists"
        if not self.api_token.strip():
            errors["api_token"] = "API token is required"
        self.field_errors = errors
        if errors:
            return None
        return Account(
            name=name,
            api_token=self.api_token.strip(),
            email=self.email.strip() or None,
            account_id=self.account_id.strip() or None,
            auth_mode=AuthMode.TOKEN,
        )
