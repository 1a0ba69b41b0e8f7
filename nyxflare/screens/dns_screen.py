"""Main DNS screen for nyxflare.

Three columns (accounts, zones, records) with a summary line, a status
line and a modal overlay for the search prompt, the record and account
forms and the delete confirmation.  The screen holds no state of its
own: every key goes to the controller and every repaint reads a fresh
:class:`~nyxflare.controller.AppSnapshot`.
"""

from __future__ import annotations

from typing import Optional

from rich.console import RenderableType
from rich.table import Table
from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import Header, Static

from nyxflare.controller import AppSnapshot, ConfirmDelete, SearchMode
from nyxflare.forms import (
    ACCOUNT_FIELD_LABELS,
    ACCOUNT_FIELDS,
    RECORD_FIELD_LABELS,
    RECORD_FIELDS,
    AccountForm,
    RecordForm,
)
from nyxflare.models import Focus, Slot


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

RTYPE_COLORS = {
    "A": "green",
    "AAAA": "cyan",
    "CNAME": "yellow",
    "PTR": "magenta",
    "TXT": "bright_blue",
    "MX": "bright_magenta",
    "SRV": "bright_cyan",
    "NS": "blue",
    "CAA": "bright_yellow",
}

RTYPE_HINTS = {
    "A": "Maps a hostname to an IPv4 address.",
    "AAAA": "Maps a hostname to an IPv6 address.",
    "CNAME": "Alias that points one name to another.",
    "PTR": "Reverse lookup: maps an IP back to a hostname.",
    "TXT": "Arbitrary text; used for SPF, DKIM, domain verification.",
    "MX": "Specifies the mail server for a domain.",
    "SRV": "Locates servers for specific services (e.g. SIP, LDAP).",
    "NS": "Delegates a zone to an authoritative name server.",
    "CAA": "Restricts which CAs can issue certificates for the domain.",
}

SECRET_FIELDS = {"api_token"}

# Header plus the summary, status and help bars.
SCREEN_CHROME_ROWS = 4


# ---------------------------------------------------------------------------
# Renderables
# ---------------------------------------------------------------------------

def _list_panel(items: list[str], selected: Optional[int], focused: bool, empty: str) -> Text:
    text = Text()
    if not items:
        text.append(empty, style="dim italic")
        return text
    for idx, item in enumerate(items):
        if idx:
            text.append("\n")
        if idx == selected:
            style = "bold reverse" if focused else "bold"
            text.append(f"> {item}", style=style)
        else:
            text.append(f"  {item}")
    return text


def render_accounts(snap: AppSnapshot) -> Text:
    empty = "Loading..." if Slot.ACCOUNTS in snap.pending else "No accounts. Press a."
    return _list_panel(
        [a.name for a in snap.accounts], snap.account_index,
        snap.focus is Focus.ACCOUNTS, empty,
    )


def render_zones(snap: AppSnapshot) -> Text:
    empty = "Loading..." if Slot.ZONES in snap.pending else "No zones"
    return _list_panel(
        [z.name for z in snap.zones], snap.zone_index,
        snap.focus is Focus.ZONES, empty,
    )


def render_records(snap: AppSnapshot) -> RenderableType:
    focused = snap.focus is Focus.RECORDS
    table = Table(expand=True, box=None, show_edge=False, pad_edge=False)
    table.add_column("Name", style="bold", ratio=3, no_wrap=True)
    table.add_column("Type", width=6)
    table.add_column("Content", ratio=3, no_wrap=True)
    table.add_column("TTL", width=6, justify="right")
    table.add_column("Proxied", width=7)

    if not snap.paged_records:
        if Slot.RECORDS in snap.pending:
            message = "Loading records..."
        elif snap.filter.needle:
            message = f"No records match '{snap.filter.needle}'"
        else:
            message = "No records"
        table.add_row(Text(message, style="dim italic"))
        return table

    for offset, rec in enumerate(snap.paged_records):
        is_selected = snap.page_offset + offset == snap.record_index
        row_style = ("bold reverse" if focused else "bold") if is_selected else ""
        color = RTYPE_COLORS.get(rec.type, "white")
        if not rec.is_proxy_eligible:
            proxied = Text("-", style="dim")
        elif rec.proxied:
            proxied = Text("⚡ on", style="orange1")
        else:
            proxied = Text("off", style="dim")
        table.add_row(
            rec.name,
            Text(rec.type, style=color),
            rec.content,
            rec.ttl_str,
            proxied,
            style=row_style,
        )
    return table


def _form_line(label: str, value: str, active: bool, error: str = "") -> Text:
    line = Text()
    line.append("> " if active else "  ", style="bold cyan")
    line.append(f"{label:<11}", style="bold" if active else "")
    line.append(value or " ", style="underline" if active else "")
    if error:
        line.append(f"  {error}", style="red")
    return line


def render_record_form(form: RecordForm) -> Text:
    title = "Edit DNS record" if form.is_edit else "Create DNS record"
    text = Text(title, style="bold")
    text.append("\n\n")
    for idx, name in enumerate(RECORD_FIELDS):
        if name == "proxied":
            value = "[x] proxied" if form.proxied else "[ ] DNS only"
        else:
            value = getattr(form, name)
        text.append_text(_form_line(
            RECORD_FIELD_LABELS[name], value, idx == form.field_index,
            form.field_errors.get(name, ""),
        ))
        text.append("\n")
    hint = RTYPE_HINTS.get(form.type.strip().upper(), "")
    if hint:
        text.append(f"\n{hint}\n", style="dim italic")
    if form.submitting:
        text.append("\nSaving...", style="yellow")
    else:
        text.append(
            "\nTab/↑↓: field  Space: toggle proxied  Enter: next/save  Esc: cancel",
            style="dim",
        )
    return text


def render_account_form(form: AccountForm) -> Text:
    text = Text("Add Cloudflare account", style="bold")
    text.append("\n\n")
    for idx, name in enumerate(ACCOUNT_FIELDS):
        value = getattr(form, name)
        if name in SECRET_FIELDS:
            value = "•" * len(value)
        text.append_text(_form_line(
            ACCOUNT_FIELD_LABELS[name], value, idx == form.field_index,
            form.field_errors.get(name, ""),
        ))
        text.append("\n")
    text.append("\nName and API token are required. Tokens are stored locally.", style="dim")
    return text


def render_overlay(snap: AppSnapshot) -> Optional[Text]:
    mode = snap.mode
    if isinstance(mode, SearchMode):
        text = Text("Search records", style="bold")
        text.append("\n\n/ ")
        text.append(mode.text or " ", style="underline")
        text.append("\n\nEnter: apply  Esc: cancel", style="dim")
        return text
    if isinstance(mode, RecordForm):
        return render_record_form(mode)
    if isinstance(mode, AccountForm):
        return render_account_form(mode)
    if isinstance(mode, ConfirmDelete):
        text = Text("Delete record", style="bold red")
        text.append(f"\n\nDelete {mode.record_name}?\n\n")
        text.append("y/Enter: delete  n/Esc: cancel", style="dim")
        return text
    return None


# ---------------------------------------------------------------------------
# Screen
# ---------------------------------------------------------------------------

class DNSScreen(Screen):
    """Accounts, zones and records of the configured Cloudflare accounts."""

    DEFAULT_CSS = """
    DNSScreen {
        layers: base overlay;
    }
    #columns {
        height: 1fr;
    }
    .column {
        border: round $primary-darken-2;
        border-title-color: $text-muted;
        padding: 0 1;
        height: 100%;
    }
    .column.-focused {
        border: round $accent;
        border-title-color: $accent;
    }
    #accounts-panel {
        width: 1fr;
    }
    #zones-panel {
        width: 1fr;
    }
    #records-panel {
        width: 3fr;
    }
    #summary-bar, #status-bar, #help-bar {
        height: 1;
        padding: 0 1;
    }
    #overlay {
        layer: overlay;
        display: none;
        offset: 20 6;
        width: 76;
        height: auto;
        max-height: 22;
        border: thick $accent;
        background: $surface;
        padding: 1 2;
    }
    """

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="columns"):
            yield Static("", id="accounts-panel", classes="column")
            yield Static("", id="zones-panel", classes="column")
            yield Static("", id="records-panel", classes="column")
        yield Static("", id="summary-bar")
        yield Static("", id="status-bar")
        yield Static("", id="help-bar")
        yield Static("", id="overlay")

    def on_mount(self) -> None:
        self.query_one("#accounts-panel", Static).border_title = "Accounts"
        self.query_one("#zones-panel", Static).border_title = "Zones"
        self.query_one("#records-panel", Static).border_title = "Records"
        self._update_viewport(self.size.height)
        self.refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        self._update_viewport(event.size.height)
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        if self.app.controller.handle_key(event.key, event.character):
            self.app.exit()
            return
        self.refresh_view()

    def _update_viewport(self, screen_height: int) -> None:
        if screen_height > SCREEN_CHROME_ROWS:
            self.app.controller.set_viewport_height(screen_height - SCREEN_CHROME_ROWS)

    def refresh_view(self) -> None:
        snap: AppSnapshot = self.app.controller.snapshot()

        for panel_id, focus in (
            ("#accounts-panel", Focus.ACCOUNTS),
            ("#zones-panel", Focus.ZONES),
            ("#records-panel", Focus.RECORDS),
        ):
            self.query_one(panel_id, Static).set_class(snap.focus is focus, "-focused")

        self.query_one("#accounts-panel", Static).update(render_accounts(snap))
        self.query_one("#zones-panel", Static).update(render_zones(snap))
        self.query_one("#records-panel", Static).update(render_records(snap))

        records_panel = self.query_one("#records-panel", Static)
        title = "Records"
        if snap.filter.needle:
            title += f" (filter: {snap.filter.needle})"
        records_panel.border_title = title

        self.query_one("#summary-bar", Static).update(Text(snap.summary))
        status = Text(snap.status.text, style="red" if snap.status.is_error else "green")
        if snap.pending:
            busy = ", ".join(sorted(slot.value for slot in snap.pending))
            status.append(f"  [loading: {busy}]", style="dim")
        self.query_one("#status-bar", Static).update(status)
        self.query_one("#help-bar", Static).update(Text(snap.help, style="dim"))

        overlay = self.query_one("#overlay", Static)
        content = render_overlay(snap)
        if content is None:
            overlay.display = False
        else:
            overlay.update(content)
            overlay.display = True
