import pytest

from chatroom.errors import ValidationError
from chatroom.models import MessageKind
from chatroom.validators import (
    identity_errors,
    require_limit,
    require_message,
    require_participant,
)


def test_participant_requires_non_empty_string_name():
    assert require_participant({"name": "Alice"}).name == "Alice"
    for payload in ({"name": ""}, {"name": 7}, {}, None):
        with pytest.raises(ValidationError):
            require_participant(payload)


def test_message_collects_every_violation():
    with pytest.raises(ValidationError) as excinfo:
        require_message({})
    errors = excinfo.value.errors
    assert len(errors) == 3
    assert any(error.startswith("to") for error in errors)
    assert any(error.startswith("text") for error in errors)
    assert any(error.startswith("type") for error in errors)


def test_status_type_is_not_accepted_from_clients():
    with pytest.raises(ValidationError) as excinfo:
        require_message({"to": "Todos", "text": "hi", "type": "status"})
    assert len(excinfo.value.errors) == 1


def test_long_values_have_no_upper_bound():
    assert require_participant({"name": "A" * 101}).name == "A" * 101
    payload = require_message({"to": "B" * 101, "text": "x" * 5001, "type": "message"}, identity_errors("C" * 101))
    assert len(payload.text) == 5001


@pytest.mark.parametrize("wire, kind", [
    ("message", MessageKind.BROADCAST),
    ("broadcast", MessageKind.BROADCAST),
    ("private_message", MessageKind.PRIVATE),
    ("private", MessageKind.PRIVATE),
])
def test_message_type_maps_to_kind(wire, kind):
    payload = require_message({"to": "Bob", "text": "hi", "type": wire})
    assert payload.to_draft().kind is kind


def test_require_message_merges_identity_errors():
    with pytest.raises(ValidationError) as excinfo:
        require_message({"to": "Todos", "text": "", "type": "message"}, identity_errors(""))
    assert len(excinfo.value.errors) == 2
    assert excinfo.value.errors[0].startswith("User")


def test_require_participant_raises_with_details():
    with pytest.raises(ValidationError) as excinfo:
        require_participant({"name": ""})
    assert excinfo.value.status_code == 422
    assert excinfo.value.errors


def test_limit_absent_means_unbounded():
    assert require_limit(None) is None
    assert require_limit("3") == 3


@pytest.mark.parametrize("raw", ["0", "-1", "abc", ""])
def test_invalid_limit_is_an_error(raw):
    with pytest.raises(ValidationError):
        require_limit(raw)