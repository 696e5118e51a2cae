from __future__ import annotations

import pytest

from src.excel.errors import InputValidationError
from src.models.validation import coerce_availability, parse_create, parse_update, parse_upload


def _create(**overrides):
    data = {"name": "John", "surname": "Doe", "seniority": "junior", "years": 5, "availability": True}
    data.update(overrides)
    return data


def test_parse_upload_ok():
    upload = parse_upload({"name": "John", "surname": "Doe"})
    assert (upload.name, upload.surname) == ("John", "Doe")


@pytest.mark.parametrize(
    "form, fragment",
    [
        ({"surname": "Doe"}, "'name' is a required property"),
        ({"name": "", "surname": "Doe"}, "name:"),
        ({"name": "   ", "surname": "Doe"}, "name: must not be blank"),
        ({"name": "John", "surname": "x" * 101}, "surname:"),
        ({"name": 42, "surname": "Doe"}, "name:"),
    ],
)
def test_parse_upload_rejects(form, fragment):
    with pytest.raises(InputValidationError) as e:
        parse_upload(form)
    assert fragment in e.value.message
    assert e.value.kind == "input"


def test_parse_upload_max_length_boundary():
    assert parse_upload({"name": "x" * 100, "surname": "Doe"}).name == "x" * 100


def test_parse_create_ok():
    dto = parse_create(_create())
    assert dto.seniority == "junior"
    assert dto.years == 5
    assert dto.availability is True


@pytest.mark.parametrize(
    "overrides",
    [{"seniority": "mid"}, {"years": 51}, {"years": -1}, {"years": "5"}, {"unknown": 1}],
)
def test_parse_create_rejects(overrides):
    with pytest.raises(InputValidationError):
        parse_create(_create(**overrides))


@pytest.mark.parametrize("value, expected", [("true", True), ("TRUE", True), ("yes", False), ("false", False), (1, True), (0, False)])
def test_coerce_availability(value, expected):
    assert coerce_availability(value) is expected


def test_parse_create_coerces_availability_string():
    assert parse_create(_create(availability="True")).availability is True


def test_parse_update_partial_and_none_dropped():
    changes = parse_update({"name": "Jane", "surname": None, "years": 7})
    assert changes.values == {"name": "Jane", "years": 7}


def test_parse_update_rejects_unknown_and_invalid():
    with pytest.raises(InputValidationError):
        parse_update({"id": "abc"})
    with pytest.raises(InputValidationError):
        parse_update({"seniority": "lead"})
