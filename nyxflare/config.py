"""Configuration management for nyxflare.

Two files live under ``$XDG_CONFIG_HOME/nyxflare`` (``~/.config/nyxflare``):

* ``config.yaml``: runtime settings (all optional).
* ``accounts.yaml``: Cloudflare accounts and their API tokens, written
  with ``0o600`` permissions.

Accounts written by earlier releases as ``accounts.json`` (in the same
directory, or in ``./config``) are still read when no YAML store exists.

Environment variables override the settings file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

from nyxflare.models import Account

logger = logging.getLogger(__name__)

LEGACY_ACCOUNTS_PATH = Path("config") / "accounts.json"

ENV_OFFLINE = "NYXFLARE_OFFLINE"
ENV_OFFLINE_ALIAS = "CF_TUI_OFFLINE"
ENV_OFFLINE_LATENCY = "NYXFLARE_OFFLINE_LATENCY"
ENV_LOG_LEVEL = "NYXFLARE_LOG_LEVEL"


class ConfigError(Exception):
    """Configuration error."""
    pass


def config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    base = env.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "nyxflare"
    home = env.get("HOME")
    if home:
        return Path(home) / ".config" / "nyxflare"
    return Path(".") / ".config" / "nyxflare"


def _seconds(value, source: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{source} must be a number of seconds, got {value!r}")
    if seconds < 0:
        raise ConfigError(f"{source} must not be negative")
    return seconds


@dataclass
class Settings:
    offline: bool = False
    offline_latency: float = 0.0
    log_level: str = ""
    accounts_path: Path = field(default_factory=lambda: config_dir() / "accounts.yaml")
    log_path: Path = field(default_factory=lambda: config_dir() / "nyxflare.log")

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """Load settings from YAML (if present), then apply env overrides."""
        env = os.environ if environ is None else environ
        base = config_dir(env)
        path = path or base / "config.yaml"

        data: dict = {}
        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to read config file {path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")

        settings = cls(
            offline=bool(data.get("offline", False)),
            offline_latency=_seconds(data.get("offline_latency"), f"offline_latency in {path}"),
            log_level=str(data.get("log_level", "") or ""),
            accounts_path=Path(data["accounts_path"]).expanduser()
            if data.get("accounts_path") else base / "accounts.yaml",
            log_path=Path(data["log_path"]).expanduser()
            if data.get("log_path") else base / "nyxflare.log",
        )

        # The offline toggle only checks for presence, like a flag.
        if ENV_OFFLINE in env or ENV_OFFLINE_ALIAS in env:
            settings.offline = True
        if env.get(ENV_OFFLINE_LATENCY):
            settings.offline_latency = _seconds(env[ENV_OFFLINE_LATENCY], ENV_OFFLINE_LATENCY)
        if env.get(ENV_LOG_LEVEL):
            settings.log_level = env[ENV_LOG_LEVEL]
        return settings


class AccountStore:
    """Loads and appends Cloudflare accounts.

    ``accounts`` is the live list; :meth:`append` adds to it and writes
    the whole list back to disk.
    """

    def __init__(self, path: Path, legacy_paths: Optional[list[Path]] = None) -> None:
        self.path = path
        if legacy_paths is None:
            legacy_paths = [path.with_name("accounts.json"), LEGACY_ACCOUNTS_PATH]
        self.legacy_paths = legacy_paths
        self.accounts: list[Account] = []

    def load(self) -> list[Account]:
        """Read accounts from the YAML store, or the first legacy JSON file found."""
        data: dict = {}
        if self.path.exists():
            data = self._read_yaml(self.path)
        else:
            for legacy in self.legacy_paths:
                if legacy.exists():
                    logger.info("Reading legacy accounts file %s", legacy)
                    data = self._read_json(legacy)
                    break

        raw_accounts = data.get("accounts", []) if isinstance(data, dict) else []
        if not isinstance(raw_accounts, list):
            raise ConfigError("'accounts' must be a list")

        accounts: list[Account] = []
        for entry in raw_accounts:
            if not isinstance(entry, dict):
                raise ConfigError(f"Invalid account entry: {entry!r}")
            account = Account.from_dict(entry)
            if not account.name or not account.api_token:
                raise ConfigError("Every account needs a name and an api_token")
            accounts.append(account)

        self.accounts[:] = accounts
        return self.accounts

    def append(self, account: Account) -> None:
        if any(a.name == account.name for a in self.accounts):
            raise ConfigError(f"An account named {account.name} already exists")
        self.accounts.append(account)
        self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"accounts": [a.to_dict() for a in self.accounts]}
        with open(self.path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.warning("Could not restrict permissions on %s", self.path)

    @staticmethod
    def _read_yaml(path: Path) -> dict:
        try:
            with open(path) as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read accounts file {path}: {e}")

    @staticmethod
    def _read_json(path: Path) -> dict:
        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read accounts file {path}: {e}")
