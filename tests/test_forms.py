import pytest

from nyxflare.forms import (
    AccountForm,
    FormMode,
    RecordForm,
    ValidationError,
    check_content,
    normalise_type,
    parse_ttl,
)
from nyxflare.models import AUTO_TTL, AuthMode, Record


def filled_form(**overrides):
    form = RecordForm.create()
    form.name = "www.example.com"
    form.content = "192.0.2.10"
    for key, value in overrides.items():
        setattr(form, key, value)
    return form


@pytest.mark.parametrize("raw, expected", [
    ("auto", AUTO_TTL),
    ("Automatic", AUTO_TTL),
    (" 300 ", 300),
    ("1", 1),
])
def test_parse_ttl_accepts(raw, expected):
    assert parse_ttl(raw) == expected


@pytest.mark.parametrize("raw", ["0", "-5", "abc", "", "1.5"])
def test_parse_ttl_rejects(raw):
    with pytest.raises(ValidationError) as exc:
        parse_ttl(raw)
    assert exc.value.field == "ttl"


def test_normalise_type_upper_cases():
    assert normalise_type(" cname ") == "CNAME"
    with pytest.raises(ValidationError):
        normalise_type("SOA")


@pytest.mark.parametrize("rtype, content", [
    ("A", "10.0.0.1"),
    ("AAAA", "2001:db8::1"),
    ("CNAME", "target.example.net"),
    ("TXT", "v=spf1 include:_spf.example.com ~all"),
    ("MX", "mail.example.com"),
])
def test_check_content_accepts(rtype, content):
    assert check_content(rtype, content) == content


@pytest.mark.parametrize("rtype, content", [
    ("A", "not-an-ip"),
    ("A", "2001:db8::1"),
    ("AAAA", "10.0.0.1"),
    ("CNAME", "two words"),
    ("TXT", "   "),
])
def test_check_content_rejects(rtype, content):
    with pytest.raises(ValidationError) as exc:
        check_content(rtype, content)
    assert exc.value.field == "content"


def test_create_form_defaults():
    form = RecordForm.create()
    assert form.mode is FormMode.CREATING
    assert form.is_edit is False
    assert form.type == "A"
    assert form.ttl == "auto"
    assert form.proxied is False
    assert form.active_field == "name"


def test_edit_form_prefills_from_record():
    record = Record(id="r1", name="api.example.com", type="A", content="192.0.2.1", ttl=AUTO_TTL, proxied=True)
    form = RecordForm.edit(record)
    assert form.is_edit
    assert form.target_id == "r1"
    assert form.ttl == "auto"
    assert form.proxied is True
    assert form.validate() == {}


def test_empty_form_reports_required_fields():
    errors = RecordForm.create().validate()
    assert set(errors) == {"name", "content"}


def test_negative_ttl_blocks_draft():
    form = filled_form(ttl="-5")
    assert form.build_draft() is None
    assert "ttl" in form.field_errors
    assert not form.is_valid


def test_proxied_only_for_eligible_types():
    form = filled_form(type="TXT", content="hello world")
    form.toggle_proxied()
    assert form.field_errors == {"proxied": "TXT records cannot be proxied"}

    form.set_field("type", "cname")
    form.set_field("content", "edge.example.net")
    assert form.is_valid


def test_build_draft_normalises_fields():
    form = filled_form(type="aaaa", content=" 2001:db8::5 ", ttl="600", proxied=True)
    draft = form.build_draft()
    assert draft is not None
    assert draft.type == "AAAA"
    assert draft.content == "2001:db8::5"
    assert draft.ttl == 600
    assert draft.proxied is True


def test_typing_edits_active_field_and_revalidates():
    form = RecordForm.create()
    for ch in "www":
        form.insert_char(ch)
    assert form.name == "www"
    assert "name" not in form.field_errors

    form.backspace()
    form.backspace()
    form.backspace()
    assert form.field_errors["name"] == "Name is required"


def test_field_cursor_is_clamped_and_proxied_ignores_text():
    form = RecordForm.create()
    form.previous_field()
    assert form.field_index == 0
    for _ in range(10):
        form.next_field()
    assert form.active_field == "proxied"
    assert form.on_last_field

    form.insert_char("x")
    form.backspace()
    assert form.proxied is False


def test_account_form_requires_name_and_token():
    form = AccountForm()
    assert form.build_account([]) is None
    assert set(form.field_errors) == {"name", "api_token"}


def test_account_form_rejects_duplicate_name():
    form = AccountForm(name="Personal", api_token="tok")
    assert form.build_account(["Personal"]) is None
    assert "already exists" in form.field_errors["name"]


def test_account_form_builds_token_account():
    form = AccountForm(name=" Lab ", api_token=" tok-lab ", account_id="abc123")
    account = form.build_account(["Personal"])
    assert account.name == "Lab"
    assert account.api_token == "tok-lab"
    assert account.email is None
    assert account.account_id == "abc123"
    assert account.auth_mode is AuthMode.TOKEN
