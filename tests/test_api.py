"""HTTP contract tests for the three services."""

import pytest
from fastapi.testclient import TestClient

from app.events.dispatcher import EventDispatcher
from app.events.registry import SubscriberRegistry
from app.events.transport import LocalEventTransport
from app.main import create_bus_app, create_moderation_app, create_query_app
from app.services.moderation import ModerationService
from app.services.projection import PostProjection
from tests.conftest import RecordingConsumer, RecordingPublisher

POST = {"type": "PostCreated", "data": {"id": 1, "title": "A"}}
COMMENT = {
    "type": "CommentCreated",
    "data": {"id": 10, "postId": 1, "content": "hi", "status": "approved"},
}


# ============================================================================
# Event bus
# ============================================================================


@pytest.fixture
def bus_dispatcher() -> EventDispatcher:
    recorder = RecordingConsumer()
    return EventDispatcher(
        SubscriberRegistry.from_urls(["http://query/events"]),
        LocalEventTransport({"http://query/events": recorder}),
    )


@pytest.fixture
def bus_client(bus_dispatcher, settings):
    with TestClient(create_bus_app(dispatcher=bus_dispatcher, settings=settings)) as client:
        yield client


class TestBusApi:
    """Event bus endpoints."""

    def test_publish_acknowledges(self, bus_client, bus_dispatcher):
        response = bus_client.post("/events", json=POST)

        assert response.status_code == 200
        assert response.json() == {
            "status": "OK",
            "event_type": "PostCreated",
            "subscriber_count": 1,
        }
        assert bus_dispatcher.events_received == 1

    def test_missing_type_rejected(self, bus_client, bus_dispatcher):
        response = bus_client.post("/events", json={"data": {"id": 1, "title": "A"}})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"]
        assert bus_dispatcher.events_received == 0

    def test_missing_field_rejected(self, bus_client):
        response = bus_client.post("/events", json={"type": "PostCreated", "data": {"id": 1}})

        assert response.status_code == 400

    def test_non_json_body_rejected(self, bus_client):
        response = bus_client.post(
            "/events", content=b"not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_deliveries_endpoint(self, bus_client):
        response = bus_client.get("/events/deliveries")

        assert response.status_code == 200
        body = response.json()
        assert body["stats"]["subscribers"] == 1
        assert body["reports"] == []

    def test_subscriber_management(self, bus_client):
        created = bus_client.post(
            "/subscribers", json={"url": "http://localhost:4010/events"}
        )
        assert created.status_code == 201
        assert created.json() == {"name": "localhost:4010", "url": "http://localhost:4010/events"}

        duplicate = bus_client.post(
            "/subscribers", json={"url": "http://localhost:4010/events", "name": "again"}
        )
        assert duplicate.status_code == 409

        listed = bus_client.get("/subscribers").json()
        assert listed["total"] == 2

        removed = bus_client.delete(
            "/subscribers", params={"url": "http://localhost:4010/events"}
        )
        assert removed.status_code == 204
        assert bus_client.get("/subscribers").json()["total"] == 1

        missing = bus_client.delete(
            "/subscribers", params={"url": "http://localhost:4010/events"}
        )
        assert missing.status_code == 404

    def test_invalid_subscriber_url(self, bus_client):
        response = bus_client.post("/subscribers", json={"url": "ftp://nowhere"})

        assert response.status_code == 422

    def test_health(self, bus_client):
        assert bus_client.get("/health").json() == {"status": "healthy", "service": "event-bus"}


def test_bus_app_builds_http_dispatcher_on_startup(settings):
    settings.SUBSCRIBER_URLS = ["http://localhost:4002/events"]
    app = create_bus_app(settings=settings)

    with TestClient(app) as client:
        listed = client.get("/subscribers").json()

    assert listed["subscribers"] == [
        {"name": "localhost:4002", "url": "http://localhost:4002/events"}
    ]


# ============================================================================
# Moderation
# ============================================================================


class TestModerationApi:
    """Moderation endpoints."""

    @pytest.fixture
    def publisher(self) -> RecordingPublisher:
        return RecordingPublisher()

    @pytest.fixture
    def client(self, publisher, settings):
        service = ModerationService(publisher, disallowed_words=["badword"])
        with TestClient(create_moderation_app(service=service, settings=settings)) as client:
            yield client

    def test_submission_is_moderated(self, client, publisher):
        response = client.post(
            "/events",
            json={"type": "CommentSubmitted", "data": {"id": 3, "postId": 7, "content": "great post"}},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "OK", "moderation": "approved"}
        assert publisher.published[0].data.status.value == "approved"

    def test_other_events_acknowledged(self, client, publisher):
        response = client.post("/events", json=POST)

        assert response.status_code == 200
        assert response.json()["moderation"] is None
        assert publisher.published == []

    def test_malformed_rejected(self, client):
        response = client.post("/events", json={"type": "CommentSubmitted", "data": {"id": 3}})

        assert response.status_code == 400


# ============================================================================
# Query
# ============================================================================


class TestQueryApi:
    """Query endpoints."""

    @pytest.fixture
    def projection(self) -> PostProjection:
        return PostProjection()

    @pytest.fixture
    def client(self, projection, settings):
        with TestClient(create_query_app(projection=projection, settings=settings)) as client:
            yield client

    def test_events_build_read_model(self, client):
        assert client.post("/events", json=POST).json() == {"status": "OK", "outcome": "applied"}
        client.post("/events", json=COMMENT)

        response = client.get("/posts")

        assert response.status_code == 200
        assert response.json() == {
            "1": {
                "id": 1,
                "title": "A",
                "comments": [{"id": 10, "postId": 1, "content": "hi", "status": "approved"}],
            }
        }

    def test_get_post_by_id(self, client):
        client.post("/events", json=POST)

        assert client.get("/posts/1").json()["title"] == "A"
        assert client.get("/posts/2").status_code == 404

    def test_out_of_order_comment_is_pending(self, client):
        response = client.post("/events", json=COMMENT)

        assert response.json()["outcome"] == "deferred"
        pending = client.get("/pending").json()
        assert pending["total"] == 1
        assert pending["pending"][0]["event"] == COMMENT

        client.post("/events", json=POST)

        assert client.get("/pending").json()["total"] == 0
        assert len(client.get("/posts/1").json()["comments"]) == 1

    def test_unhandled_event_ignored(self, client):
        response = client.post(
            "/events",
            json={"type": "CommentSubmitted", "data": {"id": 3, "postId": 1, "content": "x"}},
        )

        assert response.json()["outcome"] == "ignored"
        assert client.get("/posts").json() == {}

    def test_malformed_rejected(self, client):
        assert client.post("/events", json={"data": {}}).status_code == 400

    def test_empty_read_model(self, client):
        assert client.get("/posts").json() == {}


def test_query_app_uses_sql_store_when_configured(settings):
    settings.QUERY_DATABASE_URL = "sqlite://"
    app = create_query_app(settings=settings)

    with TestClient(app) as client:
        client.post("/events", json=POST)
        assert client.get("/posts/1").json()["id"] == 1

    from app.db.store import SqlPostStore

    assert isinstance(app.state.projection.store, SqlPostStore)


def test_query_app_builds_buffer_from_settings(settings):
    settings.PENDING_EVENT_CAPACITY = 2
    settings.PENDING_EVENT_TTL_SECONDS = 7.5
    app = create_query_app(settings=settings)

    with TestClient(app) as client:
        for post_id in (1, 2, 3, 4):
            client.post(
                "/events",
                json={
                    "type": "CommentCreated",
                    "data": {"id": 1, "postId": post_id, "content": "x", "status": "approved"},
                },
            )
        pending = client.get("/pending").json()

    assert app.state.projection.pending.ttl_seconds == 7.5
    assert pending["total"] == 2
    assert pending["dropped"] == 2
    assert [entry["event"]["data"]["postId"] for entry in pending["pending"]] == [3, 4]


def test_post_with_id_pending_is_readable(settings):
    with TestClient(create_query_app(projection=PostProjection(), settings=settings)) as client:
        client.post("/events", json={"type": "PostCreated", "data": {"id": "pending", "title": "P"}})

        response = client.get("/posts/pending")

    assert response.status_code == 200
    assert response.json() == {"id": "pending", "title": "P", "comments": []}
