"""Tests for event decoding and the wire format."""

import pytest
from pydantic import ValidationError

from app.events.errors import MalformedEventError
from app.events.types import (
    CommentModerated,
    CommentStatus,
    CommentSubmitted,
    EventType,
    PostCreated,
    parse_event,
)


class TestParseEvent:
    """Decoding wire payloads into event variants."""

    def test_post_created(self):
        event = parse_event({"type": "PostCreated", "data": {"id": 1, "title": "A"}})

        assert isinstance(event, PostCreated)
        assert event.event_type == EventType.POST_CREATED
        assert event.data.id == 1
        assert event.data.title == "A"
        assert event.aggregate_id == 1

    def test_comment_events_use_post_id_as_aggregate(self):
        event = parse_event({
            "type": "CommentModerated",
            "data": {"id": "c1", "postId": "p1", "content": "hi", "status": "approved"},
        })

        assert isinstance(event, CommentModerated)
        assert event.data.post_id == "p1"
        assert event.data.status == CommentStatus.APPROVED
        assert event.aggregate_id == "p1"

    def test_submission_has_no_status(self):
        event = parse_event({
            "type": "CommentSubmitted",
            "data": {"id": 3, "postId": 7, "content": "great post"},
        })

        assert isinstance(event, CommentSubmitted)
        assert not hasattr(event.data, "status")

    def test_missing_type_is_malformed(self):
        with pytest.raises(MalformedEventError) as exc_info:
            parse_event({"data": {"id": 1, "title": "A"}})

        assert exc_info.value.errors

    def test_unknown_type_is_malformed(self):
        with pytest.raises(MalformedEventError):
            parse_event({"type": "PostDeleted", "data": {"id": 1}})

    def test_missing_field_is_malformed(self):
        with pytest.raises(MalformedEventError):
            parse_event({"type": "CommentCreated", "data": {"id": 1, "postId": 1, "content": "x"}})

    def test_invalid_status_is_malformed(self):
        with pytest.raises(MalformedEventError):
            parse_event({
                "type": "CommentUpdated",
                "data": {"id": 1, "postId": 1, "content": "x", "status": "maybe"},
            })

    def test_non_object_payload_is_malformed(self):
        with pytest.raises(MalformedEventError):
            parse_event(["PostCreated"])

    def test_errors_are_json_serializable(self):
        import json

        with pytest.raises(MalformedEventError) as exc_info:
            parse_event({"type": "PostCreated", "data": {"id": 1.5}})

        json.dumps(exc_info.value.errors)


class TestWireFormat:
    """Serializing events back to JSON."""

    def test_to_wire_round_trips_input_fields(self):
        payload = {
            "type": "CommentCreated",
            "data": {
                "id": 10,
                "postId": 1,
                "content": "hi",
                "status": "approved",
                "author": "sam",
            },
        }

        assert parse_event(payload).to_wire() == payload

    def test_events_are_immutable(self):
        event = parse_event({"type": "PostCreated", "data": {"id": 1, "title": "A"}})

        with pytest.raises(ValidationError):
            event.data.title = "B"

    def test_build_event_from_python_names(self):
        from app.events.types import CommentData

        event = CommentModerated(
            data=CommentData(id=1, post_id=2, content="ok", status=CommentStatus.REJECTED)
        )

        assert event.to_wire() == {
            "type": "CommentModerated",
            "data": {"id": 1, "postId": 2, "content": "ok", "status": "rejected"},
        }
