"""Tests for the sync service."""

import pytest

from chatrelay.errors import InvalidInput
from chatrelay.service import FetchResult, PostAck, SyncService
from chatrelay.store import SENTINEL, Message, MessageStore


@pytest.fixture
def store():
    return MessageStore()


@pytest.fixture
def service(store):
    return SyncService(store)


class TestPost:
    """Tests for posting messages."""

    def test_post_returns_ack(self, service):
        """Test that a post is acknowledged."""
        ack = service.post("hello")

        assert isinstance(ack, PostAck)
        assert ack.ok is True
        assert ack.position == 0
        assert ack.to_dict() == {}

    def test_post_appends_to_store(self, service, store):
        """Test that posted text lands in the store."""
        service.post("hello")

        assert store.read_from(SENTINEL) == [Message(position=0, text="hello")]

    def test_empty_text_accepted(self, service, store):
        """Test that empty and whitespace-only posts are accepted."""
        service.post("")
        service.post("   ")

        assert [m.text for m in store.read_from(SENTINEL)] == ["", "   "]

    @pytest.mark.parametrize("bad", [None, 42, 1.5, ["a"], {"text": "a"}, b"bytes"])
    def test_non_string_rejected(self, service, store, bad):
        """Test that non-string bodies are rejected before touching the store."""
        with pytest.raises(InvalidInput) as exc_info:
            service.post(bad)

        assert exc_info.value.field == "message"
        assert len(store) == 0

    def test_length_limit(self, store):
        """Test that an over-long message is rejected when a limit is set."""
        service = SyncService(store, max_message_length=5)

        service.post("12345")
        with pytest.raises(InvalidInput):
            service.post("123456")

        assert len(store) == 1

    def test_no_limit_by_default(self, service):
        """Test that long messages are accepted without a limit."""
        ack = service.post("x" * 100_000)

        assert ack.ok is True


class TestFetchSince:
    """Tests for fetching messages."""

    def test_empty_store(self, service):
        """Test fetching from an empty store."""
        result = service.fetch_since(SENTINEL)

        assert isinstance(result, FetchResult)
        assert result.messages == []
        assert result.latest_position is None
        assert result.to_dict() == {"store_id": service.store.store_id, "messages": []}

    def test_fetch_at_latest_is_empty(self, service):
        """Test fetching with the latest position returns nothing."""
        service.post("a")
        service.post("b")

        assert service.fetch_since(1).messages == []

    def test_fetch_preserves_order(self, service):
        """Test that a, b, c come back in order."""
        for text in ["a", "b", "c"]:
            service.post(text)

        result = service.fetch_since(SENTINEL)

        assert [m.text for m in result.messages] == ["a", "b", "c"]
        assert [m.position for m in result.messages] == [0, 1, 2]
        assert result.latest_position == 2

    def test_fetch_idempotent(self, service):
        """Test same cursor without appends gives identical results."""
        service.post("a")
        service.post("b")

        assert service.fetch_since(0) == service.fetch_since(0)

    def test_to_dict(self, service, store):
        """Test serializing a fetch result."""
        service.post("hi")

        assert service.fetch_since(SENTINEL).to_dict() == {
            "store_id": store.store_id,
            "messages": [{"index": 0, "message": "hi"}],
        }

    def test_from_dict(self):
        """Test decoding a getMessages response body."""
        result = FetchResult.from_dict(
            {"store_id": "abc", "messages": [{"index": 4, "message": "yo"}]}
        )

        assert result.store_id == "abc"
        assert result.messages == [Message(4, "yo")]

    def test_result_names_its_store(self, service, store):
        """Test every batch carries the id of the log it came from."""
        assert service.fetch_since(SENTINEL).store_id == store.store_id

    @pytest.mark.parametrize("bad", [None, "0", 1.0, True, False, [0]])
    def test_non_integer_cursor_rejected(self, service, bad):
        """Test that non-integer cursors are rejected."""
        with pytest.raises(InvalidInput) as exc_info:
            service.fetch_since(bad)

        assert exc_info.value.field == "index"

    @pytest.mark.parametrize("bad", [-2, -100])
    def test_cursor_below_sentinel_rejected(self, service, bad):
        """Test that cursors below the sentinel are rejected."""
        with pytest.raises(InvalidInput):
            service.fetch_since(bad)

    def test_cursor_beyond_end_is_empty(self, service):
        """Test that a cursor past the log is not an error."""
        service.post("a")

        assert service.fetch_since(50).messages == []


class TestEndToEnd:
    """Tests for the full post/fetch exchange."""

    def test_scenario(self, service):
        """Test the basic two-message exchange."""
        assert service.post("hi").position == 0
        assert service.fetch_since(-1).messages == [Message(0, "hi")]

        assert service.post("there").position == 1
        assert service.fetch_since(0).messages == [Message(1, "there")]

        assert service.fetch_since(1).messages == []

    def test_no_loss_no_duplication(self, service):
        """Test that advancing cursors see every message exactly once."""
        cursor = SENTINEL
        received = []

        for round_size in [2, 0, 4, 1]:
            for i in range(round_size):
                service.post(f"msg {i}")
            result = service.fetch_since(cursor)
            received.extend(m.position for m in result.messages)
            if result.latest_position is not None:
                cursor = result.latest_position

        assert received == list(range(7))

    def test_services_share_store(self, store):
        """Test that two facades over one store see the same log."""
        first = SyncService(store)
        second = SyncService(store)

        first.post("from first")

        assert [m.text for m in second.fetch_since(SENTINEL).messages] == [
            "from first"
        ]
