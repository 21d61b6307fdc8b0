"""Tests for syncstr.models.event module."""

import json
from dataclasses import FrozenInstanceError
from unittest.mock import MagicMock, patch

import pytest

from syncstr.models.event import Event


class TestConstruction:
    """Event construction and validation."""

    def test_valid_event(self, make_event):
        event = make_event(3, created_at=1_700_000_123, content="hi")
        assert event.kind == 3
        assert event.created_at == 1_700_000_123
        assert event.content == "hi"

    def test_tags_are_frozen(self, make_event):
        """List tags are converted to nested tuples."""
        event = make_event(3, tags=[["p", "abc"], ["p", "def", "wss://relay"]])
        assert event.tags == (("p", "abc"), ("p", "def", "wss://relay"))

    def test_empty_id_rejected(self, pubkey):
        with pytest.raises(ValueError, match="id must not be empty"):
            Event(id="", pubkey=pubkey, kind=0, created_at=1, sig="f" * 128)

    def test_empty_sig_rejected(self, pubkey):
        with pytest.raises(ValueError, match="sig"):
            Event(id="a" * 64, pubkey=pubkey, kind=0, created_at=1, sig="")

    def test_kind_out_of_range(self, make_event):
        with pytest.raises(ValueError, match="kind"):
            make_event(kind=70_000)

    def test_kind_bool_rejected(self, make_event):
        with pytest.raises(TypeError, match="kind"):
            make_event(kind=True)

    def test_negative_created_at(self, make_event):
        with pytest.raises(ValueError, match="created_at"):
            make_event(created_at=-1)

    def test_tag_values_must_be_strings(self, make_event):
        with pytest.raises(TypeError, match="tags"):
            make_event(tags=[["p", 5]])

    def test_tags_must_be_sequence_of_sequences(self, make_event):
        with pytest.raises(TypeError, match="tags"):
            make_event(tags=["p"])

    def test_content_null_bytes_rejected(self, make_event):
        with pytest.raises(ValueError, match="null"):
            make_event(content="a\x00b")


class TestImmutability:
    """Events cannot be mutated after construction."""

    def test_attribute_mutation_blocked(self, make_event):
        event = make_event()
        with pytest.raises(FrozenInstanceError):
            event.kind = 1  # type: ignore[misc]

    def test_hashable(self, make_event):
        event = make_event(id="a" * 64)
        assert hash(event) == hash(Event.from_dict(event.to_dict()))


class TestShortId:
    def test_first_eight_chars(self, make_event):
        assert make_event(id="abcdef0123456789").short_id == "abcdef01"


class TestFromDict:
    """Event.from_dict() with wire JSON objects."""

    def test_round_trip(self, event_dict):
        event = Event.from_dict(event_dict)
        assert event.to_dict() == event_dict

    def test_missing_required_field(self, event_dict):
        del event_dict["sig"]
        with pytest.raises(KeyError):
            Event.from_dict(event_dict)

    def test_optional_fields_default(self, event_dict):
        del event_dict["tags"]
        del event_dict["content"]
        event = Event.from_dict(event_dict)
        assert event.tags == ()
        assert event.content == ""

    def test_wrong_kind_type(self, event_dict):
        event_dict["kind"] = "3"
        with pytest.raises(TypeError):
            Event.from_dict(event_dict)


class TestToDict:
    def test_tags_serialized_as_lists(self, make_event):
        data = make_event(3, tags=[["p", "abc"]]).to_dict()
        assert data["tags"] == [["p", "abc"]]
        json.dumps(data)

    def test_field_names(self, make_event):
        assert set(make_event().to_dict()) == {
            "id",
            "pubkey",
            "created_at",
            "kind",
            "tags",
            "content",
            "sig",
        }


class TestNostrConversion:
    """Conversions to and from nostr_sdk.Event."""

    def test_from_nostr_parses_json(self, event_dict):
        nostr_event = MagicMock()
        nostr_event.as_json.return_value = json.dumps(event_dict)

        event = Event.from_nostr(nostr_event)

        assert event.id == event_dict["id"]
        assert event.tags == (("p", "a" * 64),)

    def test_to_nostr_passes_json(self, make_event):
        event = make_event(3, tags=[["p", "abc"]])
        with patch("syncstr.models.event.NostrEvent") as mock_cls:
            mock_cls.from_json.return_value = "converted"
            assert event.to_nostr() == "converted"

        (raw,), _ = mock_cls.from_json.call_args
        assert json.loads(raw) == event.to_dict()
