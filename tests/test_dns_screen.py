import io

from rich.console import Console

from nyxflare.controller import ConfirmDelete, SearchMode
from nyxflare.forms import AccountForm, RecordForm
from nyxflare.models import FilterState
from nyxflare.screens.dns_screen import (
    render_accounts,
    render_overlay,
    render_records,
    render_zones,
)


def as_text(renderable, width=120):
    console = Console(file=io.StringIO(), width=width, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


def test_columns_mark_the_selection(loaded):
    snap = loaded.snapshot()
    assert render_accounts(snap).plain == "> Personal\n  Work Corp"
    assert render_zones(snap).plain == "> personal.example.com\n  personal.services.io"


def test_records_table_shows_rows_and_auto_ttl(loaded):
    text = as_text(render_records(loaded.snapshot()))
    assert "api.personal.example.com" in text
    assert "edge.service.net" in text
    assert "3600" in text


def test_records_table_explains_empty_filter(loaded):
    loaded.nav.apply_filter(FilterState(text="nothing", is_active=True))
    text = as_text(render_records(loaded.snapshot()))
    assert "No records match 'nothing'" in text


def test_overlay_follows_mode(loaded):
    assert render_overlay(loaded.snapshot()) is None

    loaded.mode = SearchMode(text="api", previous=FilterState())
    assert "/ api" in render_overlay(loaded.snapshot()).plain

    loaded.mode = ConfirmDelete(record_id="r1", record_name="api.example.com")
    assert "Delete api.example.com?" in render_overlay(loaded.snapshot()).plain


def test_record_form_overlay_shows_field_errors(loaded):
    form = RecordForm.create()
    form.ttl = "-5"
    form.validate()
    loaded.mode = form

    text = render_overlay(loaded.snapshot()).plain
    assert text.startswith("Create DNS record")
    assert "TTL must be a positive number or 'auto'" in text
    assert "Maps a hostname to an IPv4 address." in text


def test_account_form_overlay_masks_token(loaded):
    loaded.mode = AccountForm(name="Lab", api_token="secret")
    text = render_overlay(loaded.snapshot()).plain
    assert "secret" not in text
    assert "••••••" in text
