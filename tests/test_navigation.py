import random

import pytest

from nyxflare.models import Account, FilterState, Focus, Record, Zone
from nyxflare.navigation import NavigationModel


def make_records(*names):
    return [
        Record(id=f"r{i + 1}", name=name, type="A", content=f"192.0.2.{i + 1}", ttl=300)
        for i, name in enumerate(names)
    ]


@pytest.fixture()
def nav(accounts, zones):
    model = NavigationModel(accounts)
    model.set_zones(zones)
    model.set_records(make_records("api.example.com", "www.example.com", "mail.example.com"))
    model.focus = Focus.RECORDS
    return model


def test_initial_load_selects_first_items(accounts, zones):
    model = NavigationModel()
    assert model.current_account is None

    assert model.set_accounts(accounts) is True
    assert model.current_account.name == "Personal"
    assert model.zone_index is None

    assert model.set_zones(zones) is True
    assert model.current_zone.id == "z1"
    assert model.records_key == ("Personal", "z1")


def test_set_accounts_keeps_selection_by_name(accounts):
    model = NavigationModel(accounts)
    model.select_account(1)

    changed = model.set_accounts(list(reversed(accounts)))

    assert changed is False
    assert model.account_index == 0
    assert model.current_account.name == "Work Corp"


def test_empty_lists_report_no_change():
    model = NavigationModel()
    assert model.set_accounts([]) is False
    assert model.set_zones([]) is False
    assert model.current_account is None
    assert model.zones == []


def test_focus_cycles_both_ways():
    model = NavigationModel()
    assert model.focus is Focus.ACCOUNTS
    assert model.focus_next() is Focus.ZONES
    assert model.focus_next() is Focus.RECORDS
    assert model.focus_next() is Focus.ACCOUNTS
    assert model.focus_previous() is Focus.RECORDS


def test_select_account_resets_lower_levels(nav):
    assert nav.select_account(1) is True
    assert nav.current_account.name == "Work Corp"
    assert nav.zones == []
    assert nav.zone_index is None
    assert nav.record_index is None
    assert nav.visible_records() == []

    assert nav.select_account(1) is False


def test_select_zone_resets_records(nav):
    assert nav.select_zone(1) is True
    assert nav.current_zone.id == "z2"
    assert nav.record_index is None
    assert nav.records == []


def test_move_clamps_without_wrapping(nav):
    nav.move(-1)
    assert nav.record_index == 0

    nav.move(10)
    assert nav.record_index == 2

    nav.focus = Focus.ACCOUNTS
    assert nav.move(-1) is False
    assert nav.account_index == 0
    assert nav.move(1) is True
    assert nav.move(1) is False
    assert nav.account_index == 1


def test_filter_matches_and_clearing_restores_order(accounts, zones):
    model = NavigationModel(accounts)
    model.set_zones(zones)
    model.set_records(make_records("api.example.com", "www.example.com"))

    model.apply_filter(FilterState(text="api", is_active=True))
    assert [r.name for r in model.visible_records()] == ["api.example.com"]

    model.apply_filter(FilterState())
    assert [r.name for r in model.visible_records()] == ["api.example.com", "www.example.com"]


def test_filter_matches_type_and_content_case_insensitively(nav):
    nav.apply_filter(FilterState(text="192.0.2.3", is_active=True))
    assert [r.id for r in nav.visible_records()] == ["r3"]

    nav.apply_filter(FilterState(text="a", is_active=True))
    assert len(nav.visible_records()) == 3


def test_filter_keeps_selected_record_when_still_visible(nav):
    nav.select_record(1)  # www.example.com
    nav.apply_filter(FilterState(text="www", is_active=True))
    assert nav.current_record.id == "r2"
    assert nav.record_index == 0

    nav.apply_filter(FilterState())
    assert nav.current_record.id == "r2"
    assert nav.record_index == 1


def test_filter_with_no_match_clears_selection(nav):
    nav.apply_filter(FilterState(text="nothing-here", is_active=True))
    assert nav.visible_records() == []
    assert nav.record_index is None
    assert nav.current_record is None


def test_blank_filter_text_is_inactive(nav):
    nav.apply_filter(FilterState(text="   ", is_active=True))
    assert len(nav.visible_records()) == 3


def test_paging_follows_viewport_height(accounts, zones):
    model = NavigationModel(accounts)
    model.set_zones(zones)
    model.set_records(make_records(*[f"host{i}.example.com" for i in range(25)]))
    model.focus = Focus.RECORDS

    model.set_viewport_height(13)
    assert model.page_size == 10
    assert model.record_page_count() == 3
    assert [r.id for r in model.paged_records()][0] == "r1"

    model.page(1)
    assert model.record_index == 10
    assert model.record_page == 1

    model.page(1)
    model.page(1)
    assert model.record_index == 24
    assert model.record_page == 2
    assert len(model.paged_records()) == 5

    model.page(-1)
    assert model.record_index == 14


def test_tiny_viewport_still_shows_one_row():
    model = NavigationModel()
    model.set_viewport_height(2)
    assert model.page_size == 1
    assert model.record_page_count() == 0
    assert model.paged_records() == []


def test_append_record_selects_it(nav):
    new = Record(id="r9", name="new.example.com", type="A", content="192.0.2.9")
    nav.append_record(new)
    assert nav.current_record == new
    assert nav.record_index == 3


def test_replace_record_keeps_position(nav):
    nav.select_record(1)
    updated = Record(id="r2", name="www.example.com", type="A", content="198.51.100.2", ttl=600)
    nav.replace_record(updated)
    assert nav.record_index == 1
    assert nav.current_record.content == "198.51.100.2"
    assert len(nav.records) == 3


def test_remove_record_reclamps_to_nearest(nav):
    nav.select_record(0)
    assert nav.remove_record("r1") is True
    assert [r.id for r in nav.visible_records()] == ["r2", "r3"]
    assert nav.current_record.id == "r2"

    nav.select_record(1)
    nav.remove_record("r3")
    assert nav.record_index == 0

    nav.remove_record("r2")
    assert nav.record_index is None

    assert nav.remove_record("missing") is False


def test_remove_other_record_keeps_selection(nav):
    nav.select_record(2)
    nav.remove_record("r1")
    assert nav.current_record.id == "r3"
    assert nav.record_index == 1


def test_selection_stays_in_bounds_for_any_key_sequence():
    rng = random.Random(7)
    model = NavigationModel([Account(name="acct", api_token="t")])
    model.set_zones([Zone(id="z", name="example.com")])
    model.set_records(make_records(*[f"h{i}.example.com" for i in range(37)]))
    model.focus = Focus.RECORDS

    for _ in range(500):
        op = rng.choice(["up", "down", "pgup", "pgdn", "filter", "remove", "resize"])
        if op == "up":
            model.move(-1)
        elif op == "down":
            model.move(1)
        elif op == "pgup":
            model.page(-1)
        elif op == "pgdn":
            model.page(1)
        elif op == "filter":
            text = rng.choice(["", "h1", "h2", "zz", "example"])
            model.apply_filter(FilterState(text=text, is_active=bool(text)))
        elif op == "remove" and model.current_record is not None:
            model.remove_record(model.current_record.id)
        elif op == "resize":
            model.set_viewport_height(rng.randint(0, 40))

        visible = model.visible_records()
        if visible:
            assert model.record_index is not None
            assert 0 <= model.record_index < len(visible)
            assert model.current_record in model.paged_records()
        else:
            assert model.record_index is None
