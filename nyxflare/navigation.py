"""Hierarchical selection, focus, filtering and paging.

The model is pure state: it never talks to a provider.  Methods that
change the account or zone report it, and the controller decides which
fetch to issue.
"""

from __future__ import annotations

from typing import Optional

from nyxflare.models import Account, FilterState, Focus, Record, Zone

FOCUS_ORDER = [Focus.ACCOUNTS, Focus.ZONES, Focus.RECORDS]

# Rows of the records table taken by its border (2) and header (1).
TABLE_CHROME_ROWS = 3
DEFAULT_PAGE_SIZE = 10


def _clamp(index: Optional[int], length: int) -> Optional[int]:
    if length == 0:
        return None
    if index is None:
        return None
    return max(0, min(index, length - 1))


class NavigationModel:
    """Owns accounts/zones/records, the three selections, focus and filter."""

    def __init__(self, accounts: Optional[list[Account]] = None):
        self.accounts: list[Account] = []
        self.zones: list[Zone] = []
        self.records: list[Record] = []
        self.account_index: Optional[int] = None
        self.zone_index: Optional[int] = None
        self.record_index: Optional[int] = None
        self.focus: Focus = Focus.ACCOUNTS
        self.filter: FilterState = FilterState()
        self.page_size: int = DEFAULT_PAGE_SIZE
        self._visible: list[Record] = []
        if accounts:
            self.set_accounts(accounts)

    # ------------------------------------------------------------------
    # Current items
    # ------------------------------------------------------------------

    @property
    def current_account(self) -> Optional[Account]:
        if self.account_index is None:
            return None
        return self.accounts[self.account_index]

    @property
    def current_zone(self) -> Optional[Zone]:
        if self.zone_index is None:
            return None
        return self.zones[self.zone_index]

    @property
    def current_record(self) -> Optional[Record]:
        if self.record_index is None:
            return None
        return self._visible[self.record_index]

    @property
    def zones_key(self) -> Optional[str]:
        """Identity a zones fetch is issued for."""
        account = self.current_account
        return account.name if account else None

    @property
    def records_key(self) -> Optional[tuple[str, str]]:
        """Identity a records fetch (or record mutation) is issued for."""
        account, zone = self.current_account, self.current_zone
        if account is None or zone is None:
            return None
        return (account.name, zone.id)

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    def focus_next(self) -> Focus:
        idx = FOCUS_ORDER.index(self.focus)
        self.focus = FOCUS_ORDER[(idx + 1) % len(FOCUS_ORDER)]
        return self.focus

    def focus_previous(self) -> Focus:
        idx = FOCUS_ORDER.index(self.focus)
        self.focus = FOCUS_ORDER[(idx - 1) % len(FOCUS_ORDER)]
        return self.focus

    # ------------------------------------------------------------------
    # Loading data
    # ------------------------------------------------------------------

    def set_accounts(self, accounts: list[Account]) -> bool:
        """Replace the account list.  Returns True if the selection changed."""
        previous = self.current_account
        self.accounts = list(accounts)
        index = None
        if previous is not None:
            index = next(
                (i for i, a in enumerate(self.accounts) if a.name == previous.name), None,
            )
        if index is None and self.accounts:
            index = 0
        new_name = self.accounts[index].name if index is not None else None
        if new_name != (previous.name if previous else None):
            self._reset_account(index)
            return True
        self.account_index = index
        return False

    def add_account(self, account: Account) -> None:
        self.accounts.append(account)
        self._reset_account(len(self.accounts) - 1)

    def set_zones(self, zones: list[Zone]) -> bool:
        """Replace the zone list.  Returns True if the zone selection changed."""
        previous = self.current_zone
        self.zones = list(zones) if self.account_index is not None else []
        index = None
        if previous is not None:
            index = next((i for i, z in enumerate(self.zones) if z.id == previous.id), None)
        if index is None and self.zones:
            index = 0
        new_id = self.zones[index].id if index is not None else None
        if new_id != (previous.id if previous else None):
            self._reset_zone(index)
            return True
        self.zone_index = index
        return False

    def set_records(self, records: list[Record]) -> None:
        selected = self.current_record
        self.records = list(records) if self.zone_index is not None else []
        self._recompute_visible()
        self._select_record_by_id(selected.id if selected else None, self.record_index)
        if self.record_index is None and self._visible:
            self.record_index = 0

    # ------------------------------------------------------------------
    # Selection changes
    # ------------------------------------------------------------------

    def _reset_account(self, index: Optional[int]) -> None:
        self.account_index = _clamp(index, len(self.accounts))
        self.zones = []
        self.zone_index = None
        self._reset_zone(None)

    def _reset_zone(self, index: Optional[int]) -> None:
        self.zone_index = _clamp(index, len(self.zones))
        self.records = []
        self._visible = []
        self.record_index = None

    def select_account(self, index: int) -> bool:
        """Select an account.  Returns True if it differs from the current one."""
        index = _clamp(index, len(self.accounts))
        if index is None or index == self.account_index:
            return False
        self._reset_account(index)
        return True

    def select_zone(self, index: int) -> bool:
        """Select a zone.  Returns True if it differs from the current one."""
        index = _clamp(index, len(self.zones))
        if index is None or index == self.zone_index:
            return False
        self._reset_zone(index)
        return True

    def select_record(self, index: int) -> None:
        self.record_index = _clamp(index, len(self._visible))

    def move(self, delta: int) -> bool:
        """Move the selection in the focused column by *delta*, clamped.

        Returns True when the account or zone selection changed, so the
        caller knows a fetch is due.
        """
        if self.focus is Focus.ACCOUNTS:
            current = self.account_index if self.account_index is not None else 0
            return self.select_account(current + delta)
        if self.focus is Focus.ZONES:
            current = self.zone_index if self.zone_index is not None else 0
            return self.select_zone(current + delta)
        current = self.record_index if self.record_index is not None else 0
        self.select_record(current + delta)
        return False

    def page(self, direction: int) -> bool:
        return self.move(direction * self.page_size)

    # ------------------------------------------------------------------
    # Filter
    # ------------------------------------------------------------------

    def _recompute_visible(self) -> None:
        needle = self.filter.needle
        if not needle:
            self._visible = list(self.records)
        else:
            self._visible = [r for r in self.records if r.matches(needle)]

    def _select_record_by_id(self, record_id: Optional[str], fallback: Optional[int]) -> None:
        if record_id is not None:
            for idx, rec in enumerate(self._visible):
                if rec.id == record_id:
                    self.record_index = idx
                    return
        self.record_index = _clamp(fallback, len(self._visible))

    def apply_filter(self, state: FilterState) -> None:
        """Install a new filter, keeping the same record selected if visible."""
        selected = self.current_record
        previous_index = self.record_index
        self.filter = state
        self._recompute_visible()
        self._select_record_by_id(selected.id if selected else None, previous_index)
        if self.record_index is None and self._visible:
            self.record_index = 0

    def visible_records(self) -> list[Record]:
        return list(self._visible)

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------

    def set_viewport_height(self, height: int) -> None:
        self.page_size = max(height - TABLE_CHROME_ROWS, 1)

    @property
    def record_page(self) -> int:
        if self.record_index is None:
            return 0
        return self.record_index // self.page_size

    def record_page_count(self) -> int:
        total = len(self._visible)
        if total == 0:
            return 0
        return -(-total // self.page_size)

    def paged_records(self) -> list[Record]:
        start = self.record_page * self.page_size
        return self._visible[start:start + self.page_size]

    # ------------------------------------------------------------------
    # In-memory record updates after a mutation
    # ------------------------------------------------------------------

    def replace_record(self, record: Record) -> None:
        for idx, rec in enumerate(self.records):
            if rec.id == record.id:
                self.records[idx] = record
                break
        else:
            self.records.append(record)
        self._recompute_visible()
        self._select_record_by_id(record.id, self.record_index)

    def append_record(self, record: Record) -> None:
        self.records.append(record)
        self._recompute_visible()
        self._select_record_by_id(record.id, self.record_index)

    def remove_record(self, record_id: str) -> bool:
        """Drop a record; the selection moves to the nearest remaining row."""
        before = len(self.records)
        self.records = [r for r in self.records if r.id != record_id]
        if len(self.records) == before:
            return False
        selected = self.current_record
        previous_index = self.record_index
        self._recompute_visible()
        keep = selected.id if selected and selected.id != record_id else None
        self._select_record_by_id(keep, previous_index)
        return True
