"""Top-level state machine for nyxflare.

The controller owns the navigation model, the active input mode and the
status message.  Key presses arrive through :meth:`AppController.handle_key`
and provider results through :meth:`AppController.pump`; both run on the
UI thread, so no state here is ever touched concurrently.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from nyxflare.forms import AccountForm, RecordForm
from nyxflare.models import (
    Account,
    FilterState,
    Focus,
    Record,
    Severity,
    Slot,
    StatusMessage,
    Zone,
)
from nyxflare.navigation import NavigationModel
from nyxflare.orchestrator import Completion, RequestOrchestrator
from nyxflare.providers.base import DataProvider

logger = logging.getLogger(__name__)

HELP_LINE = (
    "q: quit  a: add account  r: refresh  Tab/Shift+Tab: focus  ↑/↓: move  "
    "/: search  n/e/d: new/edit/del  PgUp/PgDn: pages"
)


# ---------------------------------------------------------------------------
# Input modes
# ---------------------------------------------------------------------------

@dataclass
class NormalMode:
    pass


@dataclass
class SearchMode:
    text: str
    previous: FilterState


@dataclass(frozen=True)
class ConfirmDelete:
    record_id: str
    record_name: str


Mode = Union[NormalMode, SearchMode, RecordForm, ConfirmDelete, AccountForm]


@dataclass(frozen=True)
class MutationResult:
    action: str  # "create", "update" or "delete"
    record: Optional[Record] = None
    record_id: str = ""


# ---------------------------------------------------------------------------
# Snapshot handed to the renderer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppSnapshot:
    focus: Focus
    accounts: tuple[Account, ...]
    zones: tuple[Zone, ...]
    account_index: Optional[int]
    zone_index: Optional[int]
    record_index: Optional[int]
    visible_records: tuple[Record, ...]
    paged_records: tuple[Record, ...]
    page_offset: int
    record_page: int
    record_page_count: int
    filter: FilterState
    mode: Mode
    status: StatusMessage
    pending: frozenset[Slot]
    summary: str
    help: str = HELP_LINE


def _key_char(key: str, character: Optional[str]) -> Optional[str]:
    if character and len(character) == 1 and character.isprintable():
        return character
    if len(key) == 1 and key.isprintable():
        return key
    return None


class AppController:
    """Maps key events and provider completions to state transitions.

    Parameters:
      provider: The data provider chosen at startup.
      orchestrator: Slot bookkeeping and async delivery.
      on_account_added: Persists a new account; may raise.
    """

    def __init__(
        self,
        provider: DataProvider,
        orchestrator: RequestOrchestrator,
        on_account_added: Optional[Callable[[Account], Any]] = None,
    ):
        self.provider = provider
        self.orchestrator = orchestrator
        self.on_account_added = on_account_added
        self.nav = NavigationModel()
        self.mode: Mode = NormalMode()
        self.status = StatusMessage()
        self._accounts_loaded = False

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def info(self, text: str) -> None:
        self.status = StatusMessage(text, Severity.INFO)

    def error(self, text: str) -> None:
        logger.info("Status error: %s", text)
        self.status = StatusMessage(text, Severity.ERROR)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.load_accounts()

    def load_accounts(self) -> bool:
        self.info("Loading accounts...")
        return self.orchestrator.submit(
            Slot.ACCOUNTS, self.provider.list_accounts, key="accounts", label="list_accounts",
        )

    def fetch_zones(self) -> bool:
        account = self.nav.current_account
        if account is None:
            return False
        self.info(f"Loading zones for {account.name}...")
        return self.orchestrator.submit(
            Slot.ZONES,
            lambda: self.provider.list_zones(account),
            key=self.nav.zones_key,
            label=f"list_zones {account.name}",
        )

    def fetch_records(self) -> bool:
        account, zone = self.nav.current_account, self.nav.current_zone
        if account is None or zone is None:
            return False
        self.info(f"Loading records for {zone.name}...")
        return self.orchestrator.submit(
            Slot.RECORDS,
            lambda: self.provider.list_records(zone, account),
            key=self.nav.records_key,
            label=f"list_records {zone.name}",
        )

    def refresh(self) -> None:
        """Re-issue the fetch for the focused level."""
        focus = self.nav.focus
        if focus is Focus.ACCOUNTS:
            slot, submitted = Slot.ACCOUNTS, self.load_accounts()
        elif focus is Focus.ZONES:
            if self.nav.current_account is None:
                self.info("Select an account first")
                return
            slot, submitted = Slot.ZONES, self.fetch_zones()
        else:
            if self.nav.current_zone is None:
                self.info("Select a zone first")
                return
            slot, submitted = Slot.RECORDS, self.fetch_records()
        if not submitted:
            self.info(f"Still loading {slot.value}...")

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    def pump(self) -> int:
        """Apply every completion waiting in the orchestrator."""
        completions = self.orchestrator.drain()
        for completion in completions:
            self.apply_completion(completion)
        return len(completions)

    def apply_completion(self, completion: Completion) -> None:
        if completion.slot is Slot.ACCOUNTS:
            self._apply_accounts(completion)
        elif completion.slot is Slot.ZONES:
            self._apply_zones(completion)
        elif completion.slot is Slot.RECORDS:
            self._apply_records(completion)
        else:
            self._apply_mutation(completion)

    def _apply_accounts(self, completion: Completion) -> None:
        if not completion.ok:
            self.error(f"Failed to load accounts: {completion.error}")
            return
        self._accounts_loaded = True
        changed = self.nav.set_accounts(completion.value)
        if not self.nav.accounts:
            self.start_add_account(onboarding=True)
            return
        self.info(f"Loaded {len(self.nav.accounts)} account(s)")
        if changed or not self.nav.zones:
            self.fetch_zones()

    def _apply_zones(self, completion: Completion) -> None:
        if completion.key != self.nav.zones_key:
            logger.debug("Dropping zones for %r; selection moved on", completion.key)
            return
        if not completion.ok:
            self.error(f"Failed to load zones: {completion.error}")
            return
        changed = self.nav.set_zones(completion.value)
        account = self.nav.current_account
        self.info(f"Loaded {len(self.nav.zones)} zone(s) for {account.name}")
        if changed and self.nav.current_zone is not None:
            self.fetch_records()

    def _apply_records(self, completion: Completion) -> None:
        if completion.key != self.nav.records_key:
            logger.debug("Dropping records for %r; selection moved on", completion.key)
            return
        if not completion.ok:
            self.error(f"Failed to load records: {completion.error}")
            return
        self.nav.set_records(completion.value)
        self.info(f"{len(self.nav.records)} record(s) in {self.nav.current_zone.name}")

    def _apply_mutation(self, completion: Completion) -> None:
        form = self.mode if isinstance(self.mode, RecordForm) else None
        owns_form = (
            form is not None
            and form.submitting
            and (form.target_id or "create") == completion.target
        )
        if not completion.ok:
            if owns_form:
                form.submitting = False
            self.error(f"Save failed: {completion.error}")
            return

        result: MutationResult = completion.value
        if owns_form:
            self.mode = NormalMode()
        if completion.key != self.nav.records_key:
            logger.debug("Mutation result for %r no longer on screen", completion.key)
            self.info("Change saved")
            return

        if result.action == "create":
            self.nav.append_record(result.record)
            self.info(f"Created {result.record.name}")
        elif result.action == "update":
            self.nav.replace_record(result.record)
            self.info(f"Updated {result.record.name}")
        else:
            self.nav.remove_record(result.record_id)
            self.info("Record deleted")

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def handle_key(self, key: str, character: Optional[str] = None) -> bool:
        """Dispatch a key press.  Returns True when the app should quit."""
        char = _key_char(key, character)
        mode = self.mode
        if isinstance(mode, NormalMode):
            return self._normal_key(key, char)
        if isinstance(mode, SearchMode):
            self._search_key(mode, key, char)
        elif isinstance(mode, RecordForm):
            self._record_form_key(mode, key, char)
        elif isinstance(mode, ConfirmDelete):
            self._confirm_delete_key(mode, key, char)
        elif isinstance(mode, AccountForm):
            self._account_form_key(mode, key, char)
        return False

    def _normal_key(self, key: str, char: Optional[str]) -> bool:
        if char == "q":
            return True
        if key == "tab":
            self.nav.focus_next()
        elif key == "shift+tab":
            self.nav.focus_previous()
        elif key == "up":
            self._navigate(lambda: self.nav.move(-1))
        elif key == "down":
            self._navigate(lambda: self.nav.move(1))
        elif key == "pageup":
            self._navigate(lambda: self.nav.page(-1))
        elif key == "pagedown":
            self._navigate(lambda: self.nav.page(1))
        elif char == "/":
            self.mode = SearchMode(text=self.nav.filter.text, previous=self.nav.filter)
        elif char == "a":
            self.start_add_account()
        elif char == "n":
            self.start_create_record()
        elif char == "e":
            self.start_edit_record()
        elif char == "d":
            self.ask_delete_record()
        elif char == "r":
            self.refresh()
        return False

    def _navigate(self, move: Callable[[], bool]) -> None:
        focus = self.nav.focus
        if not move():
            return
        if focus is Focus.ACCOUNTS:
            self.fetch_zones()
        elif focus is Focus.ZONES:
            self.fetch_records()

    # -- search ----------------------------------------------------------

    def _search_key(self, mode: SearchMode, key: str, char: Optional[str]) -> None:
        if key == "escape":
            self.mode = NormalMode()
        elif key == "enter":
            text = mode.text
            self.nav.apply_filter(FilterState(text=text, is_active=bool(text.strip())))
            self.mode = NormalMode()
            if text.strip():
                self.info(f"Filter: {text.strip()} ({len(self.nav.visible_records())} match)")
            else:
                self.info("Filter cleared")
        elif key == "backspace":
            mode.text = mode.text[:-1]
        elif char is not None:
            mode.text += char

    # -- record form -----------------------------------------------------

    def start_create_record(self) -> None:
        if self.nav.current_zone is None:
            self.info("Select a zone before creating a record")
            return
        self.mode = RecordForm.create()
        self.info("Create DNS record")

    def start_edit_record(self) -> None:
        record = self.nav.current_record
        if record is None:
            self.info("Select a record to edit")
            return
        form = RecordForm.edit(record)
        form.validate()
        self.mode = form
        self.info(f"Editing {record.name}")

    def _record_form_key(self, form: RecordForm, key: str, char: Optional[str]) -> None:
        if key == "escape":
            self.mode = NormalMode()
            self.info("Edit cancelled")
            return
        if form.submitting:
            return
        if key in ("tab", "down"):
            form.next_field()
        elif key in ("shift+tab", "up"):
            form.previous_field()
        elif key == "enter":
            if form.on_last_field:
                self.submit_record_form(form)
            else:
                form.next_field()
        elif key == "backspace":
            form.backspace()
        elif char == " " and form.active_field == "proxied":
            form.toggle_proxied()
        elif char is not None:
            form.insert_char(char)

    def submit_record_form(self, form: RecordForm) -> bool:
        draft = form.build_draft()
        if draft is None:
            self.error(f"Fix {len(form.field_errors)} field error(s) before saving")
            return False
        account, zone = self.nav.current_account, self.nav.current_zone
        if account is None or zone is None:
            self.error("No zone selected")
            return False

        provider = self.provider
        if form.is_edit:
            target_id = form.target_id

            def call() -> MutationResult:
                record = provider.update_record(zone, account, target_id, draft)
                return MutationResult("update", record=record)
        else:
            def call() -> MutationResult:
                return MutationResult("create", record=provider.create_record(zone, account, draft))

        target = form.target_id or "create"
        if not self.orchestrator.submit(
            Slot.MUTATION, call, key=self.nav.records_key, target=target,
            label=f"{'update' if form.is_edit else 'create'} {draft.name}",
        ):
            self.error("A change to this record is already in flight")
            return False
        form.submitting = True
        self.info(f"Saving {draft.name}...")
        return True

    # -- delete ----------------------------------------------------------

    def ask_delete_record(self) -> None:
        record = self.nav.current_record
        if record is None:
            self.info("Select a record to delete")
            return
        self.mode = ConfirmDelete(record_id=record.id, record_name=record.name)
        self.info(f"Delete {record.name}?")

    def _confirm_delete_key(self, confirm: ConfirmDelete, key: str, char: Optional[str]) -> None:
        if key == "enter" or char == "y":
            self.mode = NormalMode()
            self.delete_record(confirm.record_id, confirm.record_name)
        elif key == "escape" or char == "n":
            self.mode = NormalMode()
            self.info("Delete cancelled")

    def delete_record(self, record_id: str, record_name: str = "") -> bool:
        account, zone = self.nav.current_account, self.nav.current_zone
        if account is None or zone is None:
            return False
        provider = self.provider

        def call() -> MutationResult:
            provider.delete_record(zone, account, record_id)
            return MutationResult("delete", record_id=record_id)

        if not self.orchestrator.submit(
            Slot.MUTATION, call, key=self.nav.records_key, target=record_id,
            label=f"delete {record_id}",
        ):
            self.error("A change to this record is already in flight")
            return False
        self.info(f"Deleting {record_name or record_id}...")
        return True

    # -- add account -----------------------------------------------------

    def start_add_account(self, onboarding: bool = False) -> None:
        self.mode = AccountForm()
        if onboarding:
            self.info("Add your first Cloudflare account (name + API token).")
        else:
            self.info("Add a Cloudflare API token for this account")

    def _account_form_key(self, form: AccountForm, key: str, char: Optional[str]) -> None:
        if key == "escape":
            self.mode = NormalMode()
            if not self.nav.accounts:
                self.info("No accounts configured. Press 'a' to add one.")
        elif key in ("tab", "down"):
            form.next_field()
        elif key in ("shift+tab", "up"):
            form.previous_field()
        elif key == "enter":
            if form.on_last_field:
                self.finish_add_account(form)
            else:
                form.next_field()
        elif key == "backspace":
            form.backspace()
        elif char is not None:
            form.insert_char(char)

    def finish_add_account(self, form: AccountForm) -> bool:
        account = form.build_account([a.name for a in self.nav.accounts])
        if account is None:
            self.error("; ".join(form.field_errors.values()))
            return False
        self.mode = NormalMode()
        self.nav.add_account(account)
        self.nav.focus = Focus.ACCOUNTS
        try:
            if self.on_account_added is not None:
                self.on_account_added(account)
        except Exception as e:
            logger.warning("Could not save account %s: %s", account.name, e)
            self.fetch_zones()
            self.error(f"Added {account.name} but could not save it: {e}")
            return True
        self.fetch_zones()
        self.info(f"Added account {account.name}")
        return True

    # ------------------------------------------------------------------
    # Rendering support
    # ------------------------------------------------------------------

    def set_viewport_height(self, height: int) -> None:
        self.nav.set_viewport_height(height)

    def summary(self) -> str:
        nav = self.nav
        if not nav.accounts:
            if not self._accounts_loaded:
                return "Loading accounts..."
            return "No accounts configured. Press 'a' to add one. Tokens are stored locally."
        account = nav.current_account
        zone = nav.current_zone
        account_pos = (nav.account_index or 0) + 1 if account else 0
        zone_pos = (nav.zone_index or 0) + 1 if zone else 0
        filtered = " filtered" if nav.filter.needle else ""
        return (
            f"Account: {account.name if account else 'No account'} "
            f"({account_pos}/{len(nav.accounts)}) | "
            f"Zone: {zone.name if zone else 'No zone'} ({zone_pos}/{max(len(nav.zones), 1)}) | "
            f"Records: page {nav.record_page + 1}/{max(nav.record_page_count(), 1)} "
            f"({len(nav.paged_records())} shown{filtered})"
        )

    def snapshot(self) -> AppSnapshot:
        nav = self.nav
        return AppSnapshot(
            focus=nav.focus,
            accounts=tuple(nav.accounts),
            zones=tuple(nav.zones),
            account_index=nav.account_index,
            zone_index=nav.zone_index,
            record_index=nav.record_index,
            visible_records=tuple(nav.visible_records()),
            paged_records=tuple(nav.paged_records()),
            page_offset=nav.record_page * nav.page_size,
            record_page=nav.record_page,
            record_page_count=nav.record_page_count(),
            filter=nav.filter,
            mode=copy.deepcopy(self.mode),
            status=self.status,
            pending=frozenset(self.orchestrator.pending()),
            summary=self.summary(),
        )
