"""
Tests for form/JSON binding and the decode vs. validation error split.
"""

from __future__ import annotations

import pytest
from starlette.datastructures import FormData

from asset_collections.schemas import NameOwnerPair
from core.binding import Binder
from core.errors import ApiError, ErrorCode
from core.settings import Settings
from models.schemas import CreateModel
from organizations.schemas import CreateOrganization, UpdateTeam


@pytest.fixture(name="binder")
def binder_fixture() -> Binder:
    return Binder.from_settings(Settings())


def test_bind_form(binder):
    form = FormData(
        [("name", "box"), ("license", "2"), ("urlName", "Ym94"), ("tags", "a,b"), ("private", "true")]
    )
    payload = binder.bind_form(CreateModel, form)
    assert payload.name == "box"
    assert payload.license == 2
    assert payload.url_name == "Ym94"
    assert payload.private is True
    assert payload.permission == 0


def test_bind_form_decode_error(binder):
    form = FormData([("name", "box"), ("license", "abc")])
    with pytest.raises(ApiError) as exc:
        binder.bind_form(CreateModel, form)
    assert exc.value.code is ErrorCode.FORM_DECODE
    assert exc.value.extra[0].startswith("Field: license.")


def test_bind_form_validation_error(binder):
    form = FormData([("name", "a/bc"), ("license", "1")])
    with pytest.raises(ApiError) as exc:
        binder.bind_form(CreateModel, form)
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE
    assert exc.value.extra == ["name:a/bc"]


def test_missing_required_field(binder):
    with pytest.raises(ApiError) as exc:
        binder.bind_form(CreateModel, FormData([("name", "box")]))
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE
    assert exc.value.extra == ["license:"]


def test_bind_form_list_field(binder):
    form = FormData([("new_users", "bob"), ("new_users", "carol"), ("visible", "false")])
    payload = binder.bind_form(UpdateTeam, form)
    assert payload.new_users == ["bob", "carol"]
    assert payload.visible is False


def test_reserved_owner_name(binder):
    with pytest.raises(ApiError) as exc:
        binder.validate_struct(CreateOrganization, {"name": "Admin"})
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE
    assert exc.value.extra == ["name:Admin"]


def test_reserved_names_only_apply_with_blacklist():
    payload = Binder().validate_struct(CreateOrganization, {"name": "admin"})
    assert payload.name == "admin"


def test_json_type_mismatch_is_decode_error(binder):
    with pytest.raises(ApiError) as exc:
        binder.validate_struct(NameOwnerPair, {"name": ["box"], "owner": "alice"})
    assert exc.value.code is ErrorCode.UNMARSHAL_JSON


def test_invalid_email(binder):
    with pytest.raises(ApiError) as exc:
        binder.validate_struct(CreateOrganization, {"name": "robotics", "email": "nope"})
    assert exc.value.code is ErrorCode.FORM_INVALID_VALUE
    assert exc.value.extra == ["email:nope"]
